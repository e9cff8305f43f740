"""Bounded fan-out over independent async workers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar, cast

logger = logging.getLogger(__name__)

TItem = TypeVar("TItem")
TResult = TypeVar("TResult")


async def run_bounded(
    items: Sequence[TItem],
    limit: int,
    worker: Callable[[TItem], Awaitable[TResult]],
) -> list[TResult]:
    """Run ``worker`` over ``items`` with at most ``limit`` in flight.

    ``results[i]`` always corresponds to ``items[i]``. After the first
    failure no further items are started; workers already running are
    allowed to settle, then the failure of the lowest-index item is
    raised.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    if not items:
        return []

    semaphore = asyncio.Semaphore(min(limit, len(items)))
    results: list[TResult | None] = [None] * len(items)
    errors: dict[int, BaseException] = {}

    async def _run(idx: int, item: TItem) -> None:
        async with semaphore:
            if errors:
                return
            try:
                results[idx] = await worker(item)
            except BaseException as exc:
                errors[idx] = exc
                raise

    tasks = [
        asyncio.ensure_future(_run(i, item))
        for i, item in enumerate(items)
    ]
    try:
        await asyncio.gather(*tasks, return_exceptions=True)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    if errors:
        first = min(errors)
        logger.warning(
            "event=bounded_run_failed failed=%d total=%d first_index=%d",
            len(errors),
            len(items),
            first,
        )
        raise errors[first]

    return cast(list[TResult], results)
