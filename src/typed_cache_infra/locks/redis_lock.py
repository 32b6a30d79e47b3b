"""Distributed per-key lock using redis-py's Lock."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from redis.asyncio import Redis

from typed_cache_core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS, LOCK_KEY_PREFIX


class RedisKeyLock:
    """Serializes list mutations of the same key across processes.

    ``timeout`` bounds how long a crashed holder can block others; the lock
    auto-releases after it. ``blocking_timeout`` bounds how long a caller
    waits; redis-py raises ``LockError`` when it runs out.
    """

    def __init__(
        self,
        redis: Redis,  # type: ignore[type-arg]
        timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
        blocking_timeout: float | None = None,
    ) -> None:
        """Initialize with a redis-py asyncio client."""
        self._redis = redis
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncGenerator[None, None]:
        """Hold the distributed lock for ``key`` for the duration of the block."""
        lock = self._redis.lock(
            f"{LOCK_KEY_PREFIX}{key}",
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        async with lock:
            yield

    async def close(self) -> None:
        """Close the redis connection pool; safe when shared with the store."""
        await self._redis.aclose()
