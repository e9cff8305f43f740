"""Vendor-neutral request types for the generation client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from appraiser.resilience.cancellation import CancellationToken


@dataclass(frozen=True)
class GenerationRequest:
    """One prompt to send to the model. Immutable per call."""

    user_prompt: str
    system_prompt: str | None = None
    json_mode: bool = False
    cancel_token: CancellationToken | None = None


@dataclass(frozen=True)
class VendorRequest:
    """A request already mapped onto one vendor's wire format."""

    endpoint: str
    headers: dict[str, str] = field(default_factory=lambda: dict[str, str]())
    body: dict[str, Any] = field(default_factory=lambda: dict[str, Any]())


@dataclass(frozen=True)
class SamplingSettings:
    """Recommended sampling parameters from the prompt pack."""

    temperature: float = 0.1
    top_p: float = 1.0
