"""Fixed-interval pacing primitives.

`RateLimiter` serializes operations with a minimum spacing between them.
`FixedDelay` / `NoDelay` are the injectable pauses adapters take between
pages and between search URLs; tests swap in `NoDelay`.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


class DelayStrategy:
    """Pause taken between consecutive requests to the same site."""

    seconds: float = 0.0

    async def wait(self) -> None:
        raise NotImplementedError


class FixedDelay(DelayStrategy):
    """Always sleep the same number of seconds."""

    def __init__(self, seconds: float):
        if seconds < 0:
            raise ValueError("delay must be non-negative")
        self.seconds = seconds

    async def wait(self) -> None:
        if self.seconds:
            await asyncio.sleep(self.seconds)

    def __repr__(self) -> str:
        return f"FixedDelay({self.seconds})"


class NoDelay(DelayStrategy):
    """Do not pause at all."""

    async def wait(self) -> None:
        return None

    def __repr__(self) -> str:
        return "NoDelay()"


class RateLimiter:
    """Run queued operations one at a time with a minimum interval between them.

    Operations are started in arrival order (asyncio.Lock wakes waiters
    FIFO). The interval is measured from the end of one operation to the
    start of the next, so a slow operation never shortens the gap.
    """

    def __init__(
        self,
        interval: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize rate limiter.

        Args:
            interval: Minimum seconds between two operations
            sleep: Awaitable sleep function
            clock: Monotonic clock used to measure the gap
        """
        self.interval = interval
        self._sleep = sleep
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_finished: Optional[float] = None

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Wait for our turn, then run ``operation`` and return its result.

        Errors raised by the operation propagate to this caller only; the
        queue keeps going for everyone else.
        """
        async with self._lock:
            if self._last_finished is not None:
                remaining = self.interval - (self._clock() - self._last_finished)
                if remaining > 0:
                    await self._sleep(remaining)
            try:
                return await operation()
            finally:
                self._last_finished = self._clock()
