"""Tests for deterministic exponential backoff."""

from __future__ import annotations

import asyncio

import pytest

from appraiser.resilience.errors import CancellationError, TransportError
from appraiser.resilience.retry import retry_with_backoff
from tests.conftest import RecordingSleep


class _Flaky:
    """Fails ``failures`` times with ``error`` then returns ``value``."""

    def __init__(
        self, failures: int, error: BaseException, value: str = "ok"
    ) -> None:
        self.failures = failures
        self.error = error
        self.value = value
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


async def test_success_first_try_does_not_sleep() -> None:
    sleep = RecordingSleep()
    op = _Flaky(0, TransportError("unused"))
    assert await retry_with_backoff(op, sleep=sleep) == "ok"
    assert op.calls == 1
    assert sleep.delays == []


async def test_two_failures_then_success_waits_half_then_one_second() -> None:
    """Delays are base * 2**attempt_index: 0.5s then 1.0s."""
    sleep = RecordingSleep()
    op = _Flaky(2, TransportError("503"))
    result = await retry_with_backoff(
        op, max_attempts=3, base_delay=0.5, sleep=sleep
    )
    assert result == "ok"
    assert op.calls == 3
    assert sleep.delays == [0.5, 1.0]


async def test_exhaustion_reraises_last_error() -> None:
    sleep = RecordingSleep()
    op = _Flaky(5, TransportError("still down", status_code=500))
    with pytest.raises(TransportError, match="still down") as exc_info:
        await retry_with_backoff(op, max_attempts=3, sleep=sleep)
    assert exc_info.value.status_code == 500
    assert op.calls == 3
    assert sleep.delays == [0.5, 1.0]


async def test_single_attempt_never_sleeps() -> None:
    sleep = RecordingSleep()
    op = _Flaky(1, TransportError("down"))
    with pytest.raises(TransportError):
        await retry_with_backoff(op, max_attempts=1, sleep=sleep)
    assert sleep.delays == []


async def test_cancellation_error_is_not_retried() -> None:
    sleep = RecordingSleep()
    op = _Flaky(1, CancellationError())
    with pytest.raises(CancellationError):
        await retry_with_backoff(op, sleep=sleep)
    assert op.calls == 1
    assert sleep.delays == []


async def test_asyncio_cancelled_error_is_not_retried() -> None:
    sleep = RecordingSleep()
    op = _Flaky(1, asyncio.CancelledError())
    with pytest.raises(asyncio.CancelledError):
        await retry_with_backoff(op, sleep=sleep)
    assert op.calls == 1


async def test_non_appraisal_errors_are_retried() -> None:
    """Only cancellation is non-retryable at this layer."""
    sleep = RecordingSleep()
    op = _Flaky(1, ValueError("transient"))
    assert await retry_with_backoff(op, sleep=sleep) == "ok"
    assert sleep.delays == [0.5]


async def test_custom_base_delay_doubles() -> None:
    sleep = RecordingSleep()
    op = _Flaky(3, TransportError("x"))
    await retry_with_backoff(op, max_attempts=4, base_delay=0.1, sleep=sleep)
    assert sleep.delays == pytest.approx([0.1, 0.2, 0.4])
