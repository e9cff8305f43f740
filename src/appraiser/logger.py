"""Structured JSON logger for generation calls and stage outcomes."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from appraiser.constants import ERROR_TRUNCATION_CHARS
from appraiser.logging_config import LOG_DATEFMT, LOG_FORMAT

__all__ = ["LOG_DATEFMT", "LOG_FORMAT", "RunLogger"]


class RunLogger:
    """JSON-lines run log with run_id correlation."""

    def __init__(self, log_dir: Path, level: str = "INFO") -> None:
        self._log_dir = log_dir
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logging.getLogger("appraiser.run")
        self._logger.setLevel(getattr(logging, level.upper()))

        if not self._logger.handlers:
            handler = logging.FileHandler(log_dir / "appraisal.log")
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    def log_generation(
        self,
        run_id: str,
        vendor: str,
        model: str,
        json_mode: bool,
        duration_ms: float,
        response_chars: int,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "generation",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "vendor": vendor,
                "model": model,
                "json_mode": json_mode,
                "duration_ms": duration_ms,
                "response_chars": response_chars,
            })
        )

    def log_error(
        self,
        run_id: str,
        component: str,
        error: str,
    ) -> None:
        self._logger.error(
            json.dumps({
                "type": "error",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "component": component,
                "error": error[:ERROR_TRUNCATION_CHARS],
            })
        )

    def log_stage(
        self,
        run_id: str,
        stage_name: str,
        status: str,
        duration_ms: float,
        error: str | None = None,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "stage",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "stage": stage_name,
                "status": status,
                "duration_ms": duration_ms,
                "error": error,
            })
        )
