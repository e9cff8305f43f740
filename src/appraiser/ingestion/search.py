"""In-memory keyword index over extracted pages.

Each page is one searchable document. Query terms match indexed terms
exactly, by prefix, or within a Levenshtein distance of
``fuzzy * len(term)``; matches are weighted by term frequency and
inverse document frequency and summed per page.
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from collections.abc import Iterable

from rapidfuzz.distance import Levenshtein

from appraiser.ingestion.schemas import PageText, SearchHit

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")

# Relative weight of non-exact term matches
_PREFIX_WEIGHT = 0.375
_FUZZY_WEIGHT = 0.45


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


class KeywordIndex:
    """Rank pages against a free-text keyword query."""

    def __init__(self, pages: Iterable[PageText]) -> None:
        self._pages = list(pages)
        self._term_counts = [Counter(tokenize(p.text)) for p in self._pages]
        self._doc_freq: Counter[str] = Counter()
        for counts in self._term_counts:
            self._doc_freq.update(counts.keys())
        logger.debug(
            "event=index_built pages=%d terms=%d",
            len(self._pages),
            len(self._doc_freq),
        )

    def __len__(self) -> int:
        return len(self._pages)

    def search(
        self, query: str, *, fuzzy: float = 0.0, prefix: bool = False
    ) -> list[SearchHit]:
        if not self._pages:
            return []

        # indexed term -> best weight across query terms
        weights: dict[str, float] = {}
        for term in dict.fromkeys(tokenize(query)):
            for candidate, weight in self._expand(term, fuzzy, prefix):
                if weight > weights.get(candidate, 0.0):
                    weights[candidate] = weight
        if not weights:
            return []

        total = len(self._pages)
        hits: list[SearchHit] = []
        for page, counts in zip(self._pages, self._term_counts, strict=True):
            score = 0.0
            for candidate, weight in weights.items():
                tf = counts.get(candidate, 0)
                if tf:
                    idf = math.log(1 + total / self._doc_freq[candidate])
                    score += weight * (1 + math.log(tf)) * idf
            if score > 0:
                hits.append(
                    SearchHit(
                        text=page.text,
                        page_number=page.page_number,
                        score=score,
                    )
                )

        hits.sort(key=lambda h: (-h.score, h.page_number))
        return hits

    def _expand(
        self, term: str, fuzzy: float, prefix: bool
    ) -> Iterable[tuple[str, float]]:
        """Indexed terms matching ``term`` with their match weight."""
        max_distance = math.floor(fuzzy * len(term)) if fuzzy > 0 else 0
        for candidate in self._doc_freq:
            if candidate == term:
                yield candidate, 1.0
                continue
            if prefix and candidate.startswith(term):
                yield candidate, _PREFIX_WEIGHT * len(term) / len(candidate)
                continue
            if max_distance:
                distance = Levenshtein.distance(
                    term, candidate, score_cutoff=max_distance
                )
                if distance <= max_distance:
                    yield (
                        candidate,
                        _FUZZY_WEIGHT * (1 - distance / (len(term) + 1)),
                    )
