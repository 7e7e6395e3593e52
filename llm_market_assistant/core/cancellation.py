"""Cooperative cancellation for in-flight requests."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from llm_market_assistant.core.errors import CompletionCancelledError

T = TypeVar("T")


class CancellationToken:
    """Signal shared between a caller and the work it started."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CompletionCancelledError("Request cancelled")


async def run_cancellable(awaitable: Awaitable[T], token: Optional[CancellationToken]) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    Raises:
        CompletionCancelledError: If the token was cancelled before completion.
    """
    if token is None:
        return await awaitable

    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        token.raise_if_cancelled()

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        # The caller itself was cancelled; take the work down with it
        work.cancel()
        raise
    finally:
        waiter.cancel()

    if work.done():
        return work.result()

    work.cancel()
    raise CompletionCancelledError("Request cancelled")

