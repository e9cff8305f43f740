"""Data types and capability protocols for document ingestion."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class PageText:
    """Extracted text of one 1-based page."""

    page_number: int
    text: str


@dataclass(frozen=True)
class SearchHit:
    """One ranked search result."""

    text: str
    page_number: int
    score: float


class PageExtractor(Protocol):
    """Turns a document on disk into per-page text."""

    def extract(self, path: Path) -> list[PageText]: ...


class SearchIndex(Protocol):
    """Keyword search over extracted pages, best hit first."""

    def search(
        self, query: str, *, fuzzy: float = 0.0, prefix: bool = False
    ) -> list[SearchHit]: ...
