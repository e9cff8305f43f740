"""Shared constants: single source of truth for cross-module values.

StrEnum members are str-compatible, so JSON payloads and settings
values work unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class Vendor(StrEnum):
    """Supported LLM vendors."""

    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class AssessmentStep(StrEnum):
    """Workflow position of an assessment session.

    Strictly forward-progressing; each transition is triggered by
    an explicit stage run.
    """

    AWAITING_DOCUMENT = "awaiting_document"
    DIGEST_PENDING = "digest_pending"
    DOMAINS_PENDING = "domains_pending"
    OVERALL_PENDING = "overall_pending"
    COMPLETE = "complete"


class Recommendation(StrEnum):
    """Allowed values for the overall 'recommend for use' verdict."""

    YES = "yes"
    YES_WITH_MODIFICATIONS = "yes_with_modifications"
    NO = "no"


class StageName(StrEnum):
    """Orchestrated stages."""

    DIGEST = "digest"
    DOMAINS = "domains"
    OVERALL = "overall"


class StageOutcome(StrEnum):
    """Outcome of an individual stage execution."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class StageProgress(StrEnum):
    """Progress status for stage events."""

    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


# ── AGREE II Instrument ──────────────────────────────────

DOMAIN_IDS: tuple[int, ...] = (1, 2, 3, 4, 5, 6)
ITEM_NUMBER_MIN = 1
ITEM_NUMBER_MAX = 23
ITEM_SCORE_MIN = 1
ITEM_SCORE_MAX = 7
CONFIDENCE_MIN = 0
CONFIDENCE_MAX = 100
JUSTIFICATION_MAX_CHARS = 300
ELLIPSIS = "..."

# ── Retry Strategy ───────────────────────────────────────

RETRY_MAX_ATTEMPTS = 3
RETRY_BASE_DELAY = 0.5  # seconds; doubles per attempt, no jitter

# ── LLM Output ───────────────────────────────────────────

LLM_MAX_OUTPUT_TOKENS = 4096
OPENAI_REASONING_MAX_TOKENS = 8000
OPENAI_REASONING_MODEL_PATTERN = r"^gpt-5\b|^o[0-9]"
ANTHROPIC_API_VERSION = "2023-06-01"

# ── Document Budgets ─────────────────────────────────────

DIGEST_MAX_CHARS = 200_000
EVIDENCE_TOP_K = 5
EVIDENCE_SNIPPET_CHARS = 1000
SEARCH_FUZZY = 0.2
DOMAIN_CONCURRENCY = 2

# ── Relay ────────────────────────────────────────────────

RELAY_MAX_BODY_BYTES = 10 * 1024 * 1024
RELAY_TIMEOUT_SECONDS = 30
RELAY_DEFAULT_MODEL = "claude-sonnet-4-20250514"
RELAY_DEFAULT_TEMPERATURE = 0.1
RELAY_DEFAULT_TOP_P = 1.0

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200
RUN_ID_HEX_LENGTH = 12

# ── Stage Labels (user-facing) ─────────────────────────

STAGE_LABELS: dict[str, str] = {
    "digest": "Summarizing guideline",
    "domains": "Scoring AGREE II domains",
    "overall": "Overall assessment",
}
