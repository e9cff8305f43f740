"""Page-level text extraction for guideline documents."""

from __future__ import annotations

import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from appraiser.ingestion.schemas import PageText
from appraiser.resilience.errors import ConfigurationError

logger = logging.getLogger(__name__)

_TEXT_SUFFIXES = frozenset({".txt", ".md", ".text"})


def _normalize(text: str) -> str:
    return " ".join(text.split()).strip()


class PdfPageExtractor:
    """Extract whitespace-normalized text per page.

    PDFs are read with pypdf; pages with no extractable text are
    dropped. Plain-text files become a single page 1.
    """

    def extract(self, path: Path) -> list[PageText]:
        if not path.is_file():
            msg = f"Document not found: {path}"
            raise ConfigurationError(msg)

        suffix = path.suffix.lower()
        if suffix in _TEXT_SUFFIXES:
            text = _normalize(path.read_text(encoding="utf-8"))
            return [PageText(page_number=1, text=text)] if text else []
        if suffix != ".pdf":
            msg = f"Unsupported document type: {suffix or path.name}"
            raise ConfigurationError(msg)

        try:
            reader = PdfReader(path, strict=False)
        except PdfReadError as exc:
            msg = f"Could not read PDF {path.name}: {exc}"
            raise ConfigurationError(msg) from exc

        pages: list[PageText] = []
        for index, page in enumerate(reader.pages, start=1):
            cleaned = _normalize(page.extract_text() or "")
            if cleaned:
                pages.append(PageText(page_number=index, text=cleaned))

        logger.info(
            "event=document_extracted file=%s pages=%d kept=%d",
            path.name,
            len(reader.pages),
            len(pages),
        )
        return pages
