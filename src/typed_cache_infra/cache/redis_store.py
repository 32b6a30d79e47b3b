"""Redis-backed implementation of ByteStore."""

from __future__ import annotations

import math
import time
from datetime import UTC, datetime

from redis.asyncio import Redis

from typed_cache_core.constants import (
    REDIS_ABSOLUTE_FIELD,
    REDIS_DATA_FIELD,
    REDIS_NOT_PRESENT,
    REDIS_SLIDING_FIELD,
)
from typed_cache_core.models.expiration import ExpirationPolicy


def _ttl_seconds(sliding: int, absolute: int, now: float) -> int | None:
    """TTL for a touch at ``now``, or None when the entry never expires."""
    candidates: list[float] = []
    if sliding != REDIS_NOT_PRESENT:
        candidates.append(sliding)
    if absolute != REDIS_NOT_PRESENT:
        candidates.append(absolute - now)
    if not candidates:
        return None
    return max(math.ceil(min(candidates)), 1)


class RedisByteStore:
    """Persistent store backed by Redis.

    Each entry is a hash holding the payload plus its sliding window and
    absolute deadline (epoch seconds), so reads can re-arm the key TTL.
    The client must be created with ``decode_responses=False``.
    """

    def __init__(self, redis: Redis) -> None:  # type: ignore[type-arg]
        """Initialize with a redis-py asyncio client."""
        self._redis = redis

    async def _apply_ttl(self, key: str, sliding: int, absolute: int) -> None:
        ttl = _ttl_seconds(sliding, absolute, time.time())
        if ttl is None:
            await self._redis.persist(key)
        else:
            await self._redis.expire(key, ttl)

    async def get(self, key: str) -> bytes | None:
        """Retrieve bytes by key and reset the sliding window."""
        data, sliding, absolute = await self._redis.hmget(
            key, [REDIS_DATA_FIELD, REDIS_SLIDING_FIELD, REDIS_ABSOLUTE_FIELD]
        )
        if data is None:
            return None
        if sliding is not None and int(sliding) != REDIS_NOT_PRESENT:
            await self._apply_ttl(key, int(sliding), int(absolute or REDIS_NOT_PRESENT))
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)

    async def set(self, key: str, value: bytes, policy: ExpirationPolicy) -> None:
        """Store the payload and its TTL in one MULTI/EXEC transaction."""
        now = time.time()
        deadline = policy.absolute_deadline(datetime.fromtimestamp(now, UTC))
        sliding = policy.sliding_expiration
        sliding_seconds = (
            math.ceil(sliding.total_seconds()) if sliding is not None else REDIS_NOT_PRESENT
        )
        absolute = math.ceil(deadline.timestamp()) if deadline is not None else REDIS_NOT_PRESENT
        ttl = _ttl_seconds(sliding_seconds, absolute, now)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hset(
                key,
                mapping={
                    REDIS_DATA_FIELD: value,
                    REDIS_SLIDING_FIELD: sliding_seconds,
                    REDIS_ABSOLUTE_FIELD: absolute,
                },
            )
            if ttl is None:
                pipe.persist(key)
            else:
                pipe.expire(key, ttl)
            await pipe.execute()

    async def refresh(self, key: str) -> None:
        """Reset the sliding window of a key without reading its payload."""
        sliding, absolute = await self._redis.hmget(
            key, [REDIS_SLIDING_FIELD, REDIS_ABSOLUTE_FIELD]
        )
        if sliding is None or int(sliding) == REDIS_NOT_PRESENT:
            return
        await self._apply_ttl(key, int(sliding), int(absolute or REDIS_NOT_PRESENT))

    async def delete(self, key: str) -> None:
        """Delete a key from the cache."""
        await self._redis.delete(key)

    async def close(self) -> None:
        """Close the redis connection pool."""
        await self._redis.aclose()
