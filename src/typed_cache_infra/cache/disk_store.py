"""diskcache-backed implementation of ByteStore."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path

import diskcache

from typed_cache_core.models.expiration import ExpirationPolicy, next_expiry


def _seconds_until(expires_at: datetime | None, now: datetime) -> float | None:
    """Seconds from now until expiry, as diskcache's ``expire`` expects."""
    if expires_at is None:
        return None
    return max((expires_at - now).total_seconds(), 0.0)


class DiskByteStore:
    """Persistent store backed by diskcache (SQLite under the hood).

    Entries are stored as ``(data, sliding_seconds, absolute_timestamp)`` so a
    read can push the diskcache expiry forward for sliding policies.
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize with a cache directory."""
        cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(str(cache_dir))

    def _touch(self, key: str, record: tuple[bytes, float | None, float | None]) -> None:
        """Move the diskcache expiry forward for sliding entries."""
        _, sliding, absolute = record
        if sliding is None:
            return
        now = datetime.now(UTC)
        expires_at = next_expiry(
            now,
            timedelta(seconds=sliding),
            datetime.fromtimestamp(absolute, UTC) if absolute is not None else None,
        )
        self._cache.touch(key, expire=_seconds_until(expires_at, now))

    def _get_sync(self, key: str) -> bytes | None:
        record = self._cache.get(key)
        if record is None:
            return None
        self._touch(key, record)
        return bytes(record[0])

    def _set_sync(self, key: str, value: bytes, policy: ExpirationPolicy) -> None:
        now = datetime.now(UTC)
        absolute = policy.absolute_deadline(now)
        sliding = policy.sliding_expiration
        record = (
            bytes(value),
            sliding.total_seconds() if sliding is not None else None,
            absolute.timestamp() if absolute is not None else None,
        )
        expires_at = next_expiry(now, sliding, absolute)
        self._cache.set(key, record, expire=_seconds_until(expires_at, now))

    def _refresh_sync(self, key: str) -> None:
        record = self._cache.get(key)
        if record is not None:
            self._touch(key, record)

    async def get(self, key: str) -> bytes | None:
        """Retrieve bytes by key."""
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: bytes, policy: ExpirationPolicy) -> None:
        """Store bytes with the given policy."""
        await asyncio.to_thread(self._set_sync, key, value, policy)

    async def refresh(self, key: str) -> None:
        """Reset the sliding window of a key."""
        await asyncio.to_thread(self._refresh_sync, key)

    async def delete(self, key: str) -> None:
        """Delete a key from the cache."""
        await asyncio.to_thread(self._cache.delete, key)

    async def close(self) -> None:
        """Close the diskcache connections."""
        await asyncio.to_thread(self._cache.close)
