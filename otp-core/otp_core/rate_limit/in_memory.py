"""
In-Memory Attempt Limiter
=========================
In-process sliding window limiter with striped locking.
"""

import asyncio
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from ..locks import StripedLock
from ..sweeper import PeriodicSweeper
from .base import AttemptLimiter
from .models import RateLimitInfo


class InMemoryAttemptLimiter(AttemptLimiter):
    """
    Sliding window limiter keeping attempt timestamps per identifier.

    Windows are pruned on every call and dropped once empty. A periodic
    sweep drops windows of identifiers that stopped calling.
    """

    def __init__(
        self,
        cap: int = 3,
        window: float = 600.0,
        sweep_interval: Optional[float] = None,
        stripes: int = 64,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(cap=cap, window=window)
        self.clock = clock
        self._windows: Dict[str, Deque[float]] = {}
        self._locks = StripedLock(stripes)
        self._sweeper = PeriodicSweeper(
            "attempt_limiter",
            self.sweep,
            min(sweep_interval or window, window),
        )

    def __len__(self) -> int:
        return len(self._windows)

    def _prune(self, timestamps: Deque[float], now: float) -> None:
        cutoff = now - self.window
        while timestamps and timestamps[0] < cutoff:
            timestamps.popleft()

    async def check(self, identifier: str) -> RateLimitInfo:
        """Check using sliding window algorithm."""
        self._sweeper.start()

        async with self._locks.for_key(identifier):
            now = self.clock()
            timestamps = self._windows.get(identifier)
            if timestamps is not None:
                self._prune(timestamps, now)
            count = len(timestamps) if timestamps else 0

            if count >= self.cap:
                oldest = timestamps[0]
                return RateLimitInfo(
                    allowed=False,
                    remaining=0,
                    limit=self.cap,
                    reset_at=oldest + self.window,
                    retry_after=oldest + self.window - now,
                )

            if timestamps is None:
                timestamps = self._windows[identifier] = deque()
            timestamps.append(now)

            return RateLimitInfo(
                allowed=True,
                remaining=self.cap - count - 1,
                limit=self.cap,
                reset_at=now + self.window,
            )

    async def sweep(self) -> int:
        """Drop windows with no live timestamps. Returns the number dropped."""
        removed = 0
        for identifier in list(self._windows):
            async with self._locks.for_key(identifier):
                timestamps = self._windows.get(identifier)
                if timestamps is not None:
                    self._prune(timestamps, self.clock())
                    if not timestamps:
                        del self._windows[identifier]
                        removed += 1
            # Yield between windows so foreground calls interleave
            await asyncio.sleep(0)
        return removed

    async def close(self) -> None:
        """Stop the background sweep and drop all windows."""
        await self._sweeper.stop()
        self._windows.clear()
