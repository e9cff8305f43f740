"""Retry with deterministic exponential backoff.

Delays are ``base_delay * 2**attempt_index`` (0.5s, 1s, 2s, ... with
the defaults), without jitter. Cancellation is never retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from appraiser.constants import RETRY_BASE_DELAY, RETRY_MAX_ATTEMPTS
from appraiser.resilience.errors import is_cancellation

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn: TypeAlias = Callable[[float], Awaitable[Any]]


def _should_retry(error: BaseException) -> bool:
    return not is_cancellation(error)


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "event=retry_scheduled attempt=%d delay_s=%.2f error=%s",
        retry_state.attempt_number,
        delay,
        error,
    )


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = RETRY_MAX_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
    sleep: SleepFn | None = None,
) -> T:
    """Run ``operation`` up to ``max_attempts`` times.

    Re-raises the last error once attempts are exhausted, and raises
    cancellation-kind errors immediately on the attempt they occur.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
        retry=retry_if_exception(_should_retry),
        before_sleep=_log_retry,
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )
    return await retrying(operation)
