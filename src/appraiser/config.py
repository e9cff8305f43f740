"""Environment-based configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

from appraiser.constants import (
    DIGEST_MAX_CHARS,
    DOMAIN_CONCURRENCY,
    EVIDENCE_SNIPPET_CHARS,
    EVIDENCE_TOP_K,
    LLM_MAX_OUTPUT_TOKENS,
    OPENAI_REASONING_MAX_TOKENS,
    RELAY_MAX_BODY_BYTES,
    RELAY_TIMEOUT_SECONDS,
    RETRY_BASE_DELAY,
    RETRY_MAX_ATTEMPTS,
    SEARCH_FUZZY,
    Vendor,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # LLM Provider
    llm_vendor: Vendor = Vendor.GEMINI
    gemini_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    gemini_model: str = "gemini-2.5-flash"
    openai_model: str = "gpt-4.1-2025-04-14"
    anthropic_model: str = "claude-sonnet-4-20250514"

    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    openai_base_url: str = "https://api.openai.com"
    anthropic_base_url: str = "https://api.anthropic.com"
    # Empty = call Anthropic directly; set to route through the relay
    anthropic_relay_url: str = ""

    llm_timeout_seconds: int = 60
    llm_max_output_tokens: int = LLM_MAX_OUTPUT_TOKENS
    openai_reasoning_max_tokens: int = OPENAI_REASONING_MAX_TOKENS

    # Retry
    retry_max_attempts: int = RETRY_MAX_ATTEMPTS
    retry_base_delay_seconds: float = RETRY_BASE_DELAY

    # Workflow
    domain_concurrency: int = DOMAIN_CONCURRENCY
    digest_max_chars: int = DIGEST_MAX_CHARS
    evidence_top_k: int = EVIDENCE_TOP_K
    evidence_snippet_chars: int = EVIDENCE_SNIPPET_CHARS
    search_fuzzy: float = SEARCH_FUZZY

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    # Relay
    relay_max_body_bytes: int = RELAY_MAX_BODY_BYTES
    relay_timeout_seconds: float = RELAY_TIMEOUT_SECONDS
    cors_origins: str = "*"

    @field_validator("domain_concurrency", "retry_max_attempts")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("search_fuzzy")
    @classmethod
    def _fuzzy_ratio(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError("search_fuzzy must be in [0, 1)")
        return v

    @field_validator("anthropic_relay_url")
    @classmethod
    def _relay_url(cls, v: str) -> str:
        v = v.strip()
        if v and not v.startswith(("http://", "https://")):
            logger.warning(
                "ANTHROPIC_RELAY_URL is not an absolute URL: %s", v
            )
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        """CORS origins as a list (comma-separated in the env)."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def api_key_for(self, vendor: Vendor) -> str:
        """Return the configured credential for ``vendor``."""
        return {
            Vendor.GEMINI: self.gemini_api_key,
            Vendor.OPENAI: self.openai_api_key,
            Vendor.ANTHROPIC: self.anthropic_api_key,
        }[vendor]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
