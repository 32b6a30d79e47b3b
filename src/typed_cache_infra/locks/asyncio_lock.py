"""In-process per-key lock built on asyncio.Lock."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager


class AsyncioKeyLock:
    """Serializes list mutations of the same key within one event loop.

    Locks are created on demand and dropped once no task holds or waits on them.
    """

    def __init__(self) -> None:
        """Initialize an empty lock table."""
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncGenerator[None, None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    async def close(self) -> None:
        """Nothing to release."""

    def __len__(self) -> int:
        return len(self._locks)
