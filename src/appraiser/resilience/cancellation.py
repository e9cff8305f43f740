"""Cooperative cancellation shared by every call of one stage run.

A CancellationToken is created per orchestrated stage and threaded
through the generation client. Work checks it before starting
(``raise_if_cancelled``) and in-flight awaits are raced against it
(``guard``) so a cancel aborts the pending HTTP request.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar

from appraiser.resilience.errors import CancellationError

T = TypeVar("T")


class CancellationToken:
    """One-shot cancel signal backed by an asyncio.Event."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = "Operation cancelled"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        """Fire the token. Repeated calls keep the first reason."""
        if self._event.is_set():
            return
        if reason:
            self._reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError(self._reason)

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        On cancel the pending work is cancelled, allowed to settle,
        and CancellationError is raised.
        """
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait(
                {work, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work.done():
            return work.result()

        work.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await work
        raise CancellationError(self._reason)
