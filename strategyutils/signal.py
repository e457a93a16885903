"""Cancellation signal shared by every request of one load."""

import asyncio
from typing import Optional

from strategyutils.errors import AbortedError


class AbortSignal:
    """One-shot cancellation flag for a load session.

    A fresh signal is created per load. Aborting it makes every pending
    and future request tied to it raise AbortedError.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: str = "Stopped.") -> None:
        """Fire the signal. Later calls keep the first reason."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        """Block until the signal fires."""
        await self._event.wait()

    def raise_if_aborted(self) -> None:
        if self._event.is_set():
            raise AbortedError(self.reason)
