"""Tests for singleton logging configuration and the run logger."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from appraiser.logger import RunLogger
from appraiser.logging_config import (
    _SUPPRESSED_LOGGERS,
    LOG_DATEFMT,
    LOG_FORMAT,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _reset_flag() -> None:
    """Reset the singleton flag before each test."""
    import appraiser.logging_config as mod

    mod._configured = False


def test_setup_logging_is_idempotent() -> None:
    with patch("appraiser.logging_config.logging.basicConfig") as mock_bc:
        setup_logging()
        setup_logging()
        mock_bc.assert_called_once()


def test_setup_logging_uses_shared_format() -> None:
    with patch("appraiser.logging_config.logging.basicConfig") as mock_bc:
        setup_logging("debug")
    kwargs = mock_bc.call_args.kwargs
    assert kwargs["format"] == LOG_FORMAT
    assert kwargs["datefmt"] == LOG_DATEFMT
    assert kwargs["level"] == logging.DEBUG


def test_http_loggers_suppressed() -> None:
    setup_logging()
    for name in _SUPPRESSED_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


@pytest.fixture
def run_logger(tmp_path: Path) -> Iterator[RunLogger]:
    logger = logging.getLogger("appraiser.run")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    yield RunLogger(tmp_path / "logs", level="INFO")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _lines(tmp_path: Path) -> list[dict[str, object]]:
    text = (tmp_path / "logs" / "appraisal.log").read_text()
    return [json.loads(line) for line in text.splitlines() if line]


def test_run_logger_writes_json_lines(
    run_logger: RunLogger, tmp_path: Path
) -> None:
    run_logger.log_generation(
        run_id="abc123",
        vendor="gemini",
        model="gemini-2.5-flash",
        json_mode=True,
        duration_ms=12.5,
        response_chars=40,
    )
    run_logger.log_stage("abc123", "digest", "completed", 20.0)

    generation, stage = _lines(tmp_path)
    assert generation["type"] == "generation"
    assert generation["run_id"] == "abc123"
    assert generation["json_mode"] is True
    assert stage["type"] == "stage"
    assert stage["stage"] == "digest"
    assert stage["status"] == "completed"
    assert stage["error"] is None


def test_run_logger_truncates_errors(
    run_logger: RunLogger, tmp_path: Path
) -> None:
    run_logger.log_error("abc123", "domains", "x" * 500)
    (entry,) = _lines(tmp_path)
    assert entry["component"] == "domains"
    assert len(str(entry["error"])) == 200
