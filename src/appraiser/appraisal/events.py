"""Progress events emitted by the orchestrator while a stage runs."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from appraiser.constants import STAGE_LABELS, StageProgress


@dataclass(frozen=True)
class StageEvent:
    """Typed event emitted during stage progress."""

    name: str
    status: StageProgress
    message: str = ""
    duration_ms: float = 0.0
    # Present while the domain stage fans out
    completed: int | None = None
    total: int | None = None
    percent: float | None = None

    @property
    def label(self) -> str:
        """User-friendly display label from STAGE_LABELS."""
        return STAGE_LABELS[self.name]


ProgressCallback: TypeAlias = Callable[[StageEvent], None]
