"""Cooperative cancellation shared by the relay loops."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class CancelToken:
    """One-way cancellation signal.

    The owner calls `cancel()`; relay loops poll `cancelled` between
    operations and wrap their blocking reads in `guard()`.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, aw: Awaitable[T]) -> Optional[T]:
        """Await `aw` unless cancellation arrives first.

        Returns the awaitable's result, or None when the token fired before it
        completed; the pending operation is then cancelled.
        """
        operation = asyncio.ensure_future(aw)
        if self.cancelled:
            operation.cancel()
            await asyncio.gather(operation, return_exceptions=True)
            return None

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({operation, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not operation.done():
                operation.cancel()
                await asyncio.gather(operation, return_exceptions=True)

        if operation.cancelled():
            return None
        return operation.result()
