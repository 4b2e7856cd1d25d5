"""
Request Cancellation

An AbortSignal is handed to an API call; aborting it stops the in-flight
HTTP request and makes the call raise RequestCancelledError. Signals are
one-shot: once aborted they stay aborted.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from finance_dashboard.services.api.errors import RequestCancelledError

T = TypeVar("T")


class AbortSignal:
    """One-shot cancellation flag shared between a caller and a request."""

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def abort(self, reason: str = "aborted") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_aborted(self) -> None:
        if self.aborted:
            raise RequestCancelledError(f"Request cancelled: {self._reason}")

    async def sleep(self, seconds: float) -> None:
        """Sleep, waking early with RequestCancelledError if aborted."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        self.raise_if_aborted()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` unless the signal fires first.

        If the signal fires, the awaitable is cancelled and
        RequestCancelledError is raised.
        """
        work = asyncio.ensure_future(awaitable)
        watcher = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (work, watcher):
                if not task.done():
                    task.cancel()

        if not self.aborted:
            return work.result()

        # A result that lands together with the abort is discarded too
        await asyncio.gather(work, return_exceptions=True)
        raise RequestCancelledError(f"Request cancelled: {self._reason}")
