"""Rolling API call counter."""

import time
from collections import deque
from typing import Callable


class RateMeter:
    """Counts calls issued in the trailing window (60 s by default).

    Append-only; old entries are pruned lazily whenever the count is read.
    Display only: nothing blocks when the limit is exceeded.
    """

    def __init__(
        self,
        limit: int = 30,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._calls: deque[float] = deque()

    def record(self) -> None:
        """Register one outgoing request."""
        self._calls.append(self._clock())

    def count(self) -> int:
        """Calls in the trailing window."""
        cutoff = self._clock() - self.window
        while self._calls and self._calls[0] <= cutoff:
            self._calls.popleft()
        return len(self._calls)

    def remaining(self) -> int:
        return max(0, self.limit - self.count())

    def __str__(self) -> str:
        return f"{self.count()}/{self.limit}"
