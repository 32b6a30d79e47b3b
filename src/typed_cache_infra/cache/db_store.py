"""Database-backed implementation of ByteStore using a key/value table."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from typed_cache_core.models.expiration import ExpirationPolicy, is_expired, next_expiry
from typed_cache_infra.db.models import CacheEntryModel


def _touch(entry: CacheEntryModel, now: datetime) -> None:
    """Push expires_at forward for sliding entries."""
    if entry.sliding_seconds is None:
        return
    entry.expires_at = next_expiry(
        now, timedelta(seconds=entry.sliding_seconds), entry.absolute_expires_at
    )


class DBByteStore:
    """Store backed by the application's database.

    Each call opens its own session, so one store can serve concurrent callers.
    When ``engine`` is given the store owns it and disposes it on close.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ) -> None:
        """Initialize with an async SQLAlchemy session factory."""
        self._session_factory = session_factory
        self._engine = engine

    async def _live_entry(self, session: AsyncSession, key: str) -> CacheEntryModel | None:
        """Load an entry, deleting it if expired."""
        entry = await session.get(CacheEntryModel, key)
        if entry is None:
            return None
        if is_expired(entry.expires_at, datetime.now(UTC)):
            await session.delete(entry)
            await session.commit()
            return None
        return entry

    async def get(self, key: str) -> bytes | None:
        """Retrieve bytes by key, or None if missing/expired."""
        async with self._session_factory() as session:
            entry = await self._live_entry(session, key)
            if entry is None:
                return None
            if entry.sliding_seconds is not None:
                _touch(entry, datetime.now(UTC))
                await session.commit()
            return entry.value

    async def set(self, key: str, value: bytes, policy: ExpirationPolicy) -> None:
        """Store bytes with the given policy."""
        now = datetime.now(UTC)
        absolute = policy.absolute_deadline(now)
        sliding = policy.sliding_expiration
        async with self._session_factory() as session:
            entry = await session.get(CacheEntryModel, key)
            if entry is None:
                entry = CacheEntryModel(key=key)
                session.add(entry)
            entry.value = bytes(value)
            entry.sliding_seconds = sliding.total_seconds() if sliding is not None else None
            entry.absolute_expires_at = absolute
            entry.expires_at = next_expiry(now, sliding, absolute)
            await session.commit()

    async def refresh(self, key: str) -> None:
        """Reset the sliding window of a key."""
        async with self._session_factory() as session:
            entry = await self._live_entry(session, key)
            if entry is None or entry.sliding_seconds is None:
                return
            _touch(entry, datetime.now(UTC))
            await session.commit()

    async def delete(self, key: str) -> None:
        """Delete a key from the cache."""
        async with self._session_factory() as session:
            entry = await session.get(CacheEntryModel, key)
            if entry is None:
                return
            await session.delete(entry)
            await session.commit()

    async def close(self) -> None:
        """Dispose the owned engine's connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
