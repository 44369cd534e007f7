"""
Striped Locks
=============
Per-identifier mutual exclusion without one global lock.
"""

import asyncio
from typing import List


class StripedLock:
    """
    Fixed pool of asyncio locks selected by identifier hash.

    Operations on the same identifier always serialize on the same lock;
    operations on different identifiers contend only on a stripe collision.
    """

    def __init__(self, stripes: int = 64):
        if stripes < 1:
            raise ValueError("stripes must be at least 1")
        self._locks: List[asyncio.Lock] = [asyncio.Lock() for _ in range(stripes)]

    def __len__(self) -> int:
        return len(self._locks)

    def for_key(self, key: str) -> asyncio.Lock:
        """Return the lock guarding ``key``."""
        return self._locks[hash(key) % len(self._locks)]
