"""Document ingestion: page extraction and keyword search."""

from appraiser.ingestion.extractor import PdfPageExtractor
from appraiser.ingestion.schemas import (
    PageExtractor,
    PageText,
    SearchHit,
    SearchIndex,
)
from appraiser.ingestion.search import KeywordIndex

__all__ = [
    "KeywordIndex",
    "PageExtractor",
    "PageText",
    "PdfPageExtractor",
    "SearchHit",
    "SearchIndex",
]
