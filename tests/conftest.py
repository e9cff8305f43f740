"""Shared test fixtures: fake vendor transport, settings, pages."""

import os

# Force demo API keys for all tests; no real LLM calls.
# Set unconditionally at import time so real keys in the shell never
# reach a Settings() created by a test.
os.environ["GEMINI_API_KEY"] = "for-demo-purposes-only"
os.environ["OPENAI_API_KEY"] = "for-demo-purposes-only"
os.environ["ANTHROPIC_API_KEY"] = "for-demo-purposes-only"
os.environ.pop("ANTHROPIC_RELAY_URL", None)
os.environ.pop("LLM_VENDOR", None)

import json
from collections.abc import Callable
from typing import Any, TypeAlias

import httpx
import pytest

from appraiser.config import Settings
from appraiser.ingestion.schemas import PageText, SearchHit
from appraiser.llm.client import GenerationClient

Handler: TypeAlias = Callable[[httpx.Request], httpx.Response]


def gemini_payload(text: str) -> dict[str, Any]:
    """Minimal generateContent response carrying ``text``."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def gemini_json(data: Any) -> httpx.Response:
    return httpx.Response(200, json=gemini_payload(json.dumps(data)))


def make_item(
    item: int, score: int = 4, confidence: int = 80
) -> dict[str, Any]:
    return {
        "item": item,
        "score_1to7": score,
        "confidence_0to100": confidence,
        "evidence_citations": [{"page": 1, "section": "Methods"}],
        "justification": f"Evidence for item {item}.",
    }


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeSearchIndex:
    """SearchIndex returning canned hits, recording each query."""

    def __init__(self, hits: dict[str, list[SearchHit]] | None = None):
        self.hits = hits or {}
        self.queries: list[tuple[str, float, bool]] = []

    def search(
        self, query: str, *, fuzzy: float = 0.0, prefix: bool = False
    ) -> list[SearchHit]:
        self.queries.append((query, fuzzy, prefix))
        return list(self.hits.get(query, []))


@pytest.fixture
def settings(tmp_path: Any) -> Settings:
    return Settings(
        log_dir=tmp_path / "logs",
        retry_base_delay_seconds=0.5,
        retry_max_attempts=3,
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_client(
    settings: Settings, sleep: RecordingSleep
) -> Callable[..., GenerationClient]:
    """Build a GenerationClient whose HTTP goes to ``handler``."""

    def _make(
        handler: Handler,
        *,
        vendor: str | None = None,
        client_settings: Settings | None = None,
    ) -> GenerationClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GenerationClient(
            client_settings or settings,
            vendor=vendor,
            http_client=http,
            sleep=sleep,
        )

    return _make


@pytest.fixture
def pages() -> list[PageText]:
    return [
        PageText(
            page_number=1,
            text=(
                "The objective of this guideline is to improve the "
                "management of adult patients with type 2 diabetes."
            ),
        ),
        PageText(
            page_number=2,
            text=(
                "A systematic search of MEDLINE and Embase databases was "
                "performed. Evidence quality was graded using GRADE."
            ),
        ),
        PageText(
            page_number=3,
            text=(
                "Funding was provided by the national health service. "
                "Competing interests were declared by all panel members."
            ),
        ),
    ]
