"""In-process implementation of ByteStore."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from typed_cache_core.models.expiration import ExpirationPolicy, is_expired, next_expiry


@dataclass
class _Entry:
    data: bytes
    sliding: timedelta | None
    absolute: datetime | None
    expires_at: datetime | None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MemoryByteStore:
    """Dict-backed store with sliding and absolute expiry.

    Not shared across processes. Every method completes without yielding to
    the event loop, so a single call is never interleaved with another.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        """Initialize with an optional clock for deterministic expiry."""
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def _live_entry(self, key: str) -> _Entry | None:
        """Return the entry for key, evicting it first if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if is_expired(entry.expires_at, self._clock()):
            del self._entries[key]
            return None
        return entry

    def _touch(self, entry: _Entry) -> None:
        entry.expires_at = next_expiry(self._clock(), entry.sliding, entry.absolute)

    async def get(self, key: str) -> bytes | None:
        """Retrieve bytes by key and reset the sliding window."""
        entry = self._live_entry(key)
        if entry is None:
            return None
        self._touch(entry)
        return entry.data

    async def set(self, key: str, value: bytes, policy: ExpirationPolicy) -> None:
        """Store bytes with the given policy."""
        now = self._clock()
        absolute = policy.absolute_deadline(now)
        self._entries[key] = _Entry(
            data=bytes(value),
            sliding=policy.sliding_expiration,
            absolute=absolute,
            expires_at=next_expiry(now, policy.sliding_expiration, absolute),
        )

    async def refresh(self, key: str) -> None:
        """Reset the sliding window of a live key."""
        entry = self._live_entry(key)
        if entry is not None:
            self._touch(entry)

    async def delete(self, key: str) -> None:
        """Delete a key; missing keys are ignored."""
        self._entries.pop(key, None)

    async def close(self) -> None:
        """Nothing to release; entries live as long as the store."""

    def __len__(self) -> int:
        return len(self._entries)
