"""Factory functions for building stores, locks and the facade from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from typed_cache.facade import TypedCache
from typed_cache_core.interfaces.codec import ValueCodec
from typed_cache_core.interfaces.lock import KeyLock
from typed_cache_core.interfaces.store import ByteStore

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from typed_cache_core.config.settings import Settings


def create_redis_client(settings: Settings) -> Redis:  # type: ignore[type-arg]
    """Create a redis-py asyncio client that returns raw bytes."""
    from redis.asyncio import Redis

    return Redis.from_url(settings.redis_url, decode_responses=False)


async def create_byte_store(
    settings: Settings,
    redis: Redis | None = None,  # type: ignore[type-arg]
) -> ByteStore:
    """Create the byte store selected by ``settings.cache_backend``.

    The db backend creates its table on first use.
    """
    if settings.cache_backend == "disk":
        from typed_cache_infra.cache.disk_store import DiskByteStore

        return DiskByteStore(settings.cache_dir)

    if settings.cache_backend == "redis":
        from typed_cache_infra.cache.redis_store import RedisByteStore

        return RedisByteStore(redis or create_redis_client(settings))

    if settings.cache_backend == "db":
        from typed_cache_infra.cache.db_store import DBByteStore
        from typed_cache_infra.db.engine import create_engine
        from typed_cache_infra.db.session import create_session_factory, init_db

        engine = create_engine(settings)
        await init_db(engine)
        return DBByteStore(create_session_factory(engine), engine)

    from typed_cache_infra.cache.memory_store import MemoryByteStore

    return MemoryByteStore()


def create_key_lock(
    settings: Settings,
    redis: Redis | None = None,  # type: ignore[type-arg]
) -> KeyLock | None:
    """Create the per-key lock selected by ``settings.lock_backend``, or None."""
    if settings.lock_backend == "asyncio":
        from typed_cache_infra.locks.asyncio_lock import AsyncioKeyLock

        return AsyncioKeyLock()

    if settings.lock_backend == "redis":
        from typed_cache_infra.locks.redis_lock import RedisKeyLock

        return RedisKeyLock(
            redis or create_redis_client(settings),
            timeout=settings.lock_timeout_seconds,
        )

    return None


def create_codec(settings: Settings) -> ValueCodec:
    """Create the JSON codec configured by settings."""
    from typed_cache_infra.codec.json_codec import JsonValueCodec

    return JsonValueCodec(
        allow_non_public_construction=settings.allow_non_public_construction
    )


async def create_typed_cache(settings: Settings) -> TypedCache:
    """Wire a TypedCache from settings, sharing one redis client where needed."""
    redis = None
    if "redis" in (settings.cache_backend, settings.lock_backend):
        redis = create_redis_client(settings)

    return TypedCache(
        await create_byte_store(settings, redis),
        create_codec(settings),
        lock=create_key_lock(settings, redis),
        default_sliding_expiration=settings.default_sliding_expiration,
    )
