"""Typed get/set and list helpers over a byte store."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, nullcontext
from datetime import timedelta
from typing import Any, TypeVar

import structlog

from typed_cache.observability.tracing import traced_operation
from typed_cache_core.constants import DEFAULT_SLIDING_EXPIRATION
from typed_cache_core.exceptions import (
    CodecError,
    CorruptCacheEntryError,
    InvalidArgumentError,
    ItemNotFoundError,
    OperationCancelledError,
)
from typed_cache_core.interfaces.codec import ValueCodec
from typed_cache_core.interfaces.lock import KeyLock
from typed_cache_core.interfaces.store import ByteStore
from typed_cache_core.models.expiration import CacheWriteOptions, ExpirationPolicy

T = TypeVar("T")

logger = structlog.get_logger()


def _require(value: object, name: str) -> None:
    """Raise InvalidArgumentError naming ``name`` if ``value`` is None."""
    if value is None:
        raise InvalidArgumentError(name)


def _require_key(key: object) -> None:
    _require(key, "key")
    if not isinstance(key, str):
        raise InvalidArgumentError("key", "'key' must be a string")


def _require_callable(fn: object, name: str) -> None:
    _require(fn, name)
    if not callable(fn):
        raise InvalidArgumentError(name, f"'{name}' must be callable")


def _first_match(items: list[T], predicate: Callable[[T], bool]) -> int | None:
    """Index of the first item satisfying predicate, or None."""
    for index, item in enumerate(items):
        if predicate(item):
            return index
    return None


class TypedCache:
    """Typed facade over a ``ByteStore`` and a ``ValueCodec``.

    Single values are encoded and written as-is. Lists are stored as one
    entry and every list operation reads the whole list, changes it in memory
    and writes the whole list back. Without a ``lock`` that cycle is not
    atomic: concurrent mutations of one key race and the last write wins.
    Passing a ``KeyLock`` serializes list mutations per key.

    Every operation takes an optional ``cancel_event``; once it is set, the
    next store call is not started and ``OperationCancelledError`` is raised.
    """

    def __init__(
        self,
        store: ByteStore,
        codec: ValueCodec | None = None,
        *,
        lock: KeyLock | None = None,
        default_sliding_expiration: timedelta = DEFAULT_SLIDING_EXPIRATION,
    ) -> None:
        """Initialize with a store, and optionally a codec, lock and default window."""
        _require(store, "store")
        _require(default_sliding_expiration, "default_sliding_expiration")
        if default_sliding_expiration <= timedelta(0):
            raise InvalidArgumentError(
                "default_sliding_expiration", "'default_sliding_expiration' must be positive"
            )
        if codec is None:
            from typed_cache_infra.codec.json_codec import JsonValueCodec

            codec = JsonValueCodec()
        self._store = store
        self._codec = codec
        self._lock = lock
        self._default_policy = CacheWriteOptions().resolve(default_sliding_expiration)

    # ------------------------------------------------------------------
    # Single values
    # ------------------------------------------------------------------

    @traced_operation("get")
    async def get(
        self,
        key: str,
        value_type: type[T] | Any,  # noqa: ANN401
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        """Return the value stored at ``key`` decoded as ``value_type``.

        Returns None when the key is absent. Bytes that do not decode as
        ``value_type`` raise ``CorruptCacheEntryError``.
        """
        _require_key(key)
        _require(value_type, "value_type")
        data = await self._read(key, cancel_event)
        if data is None:
            logger.debug("cache_get", key=key, hit=False)
            return None
        logger.debug("cache_get", key=key, hit=True)
        return self._decode(key, data, value_type)

    @traced_operation("set")
    async def set(
        self,
        key: str,
        value: object,
        options: CacheWriteOptions | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        """Encode ``value`` and store it at ``key``, overwriting any entry."""
        _require_key(key)
        _require(value, "value")
        policy = self._policy(options)
        await self._write(key, value, policy, cancel_event)
        logger.debug("cache_set", key=key)

    @traced_operation("refresh")
    async def refresh(self, key: str, *, cancel_event: asyncio.Event | None = None) -> None:
        """Reset the sliding expiration of ``key``."""
        _require_key(key)
        self._check_cancelled(cancel_event)
        await self._store.refresh(key)

    @traced_operation("delete")
    async def delete(self, key: str, *, cancel_event: asyncio.Event | None = None) -> None:
        """Remove ``key`` from the store."""
        _require_key(key)
        self._check_cancelled(cancel_event)
        await self._store.delete(key)
        logger.debug("cache_delete", key=key)

    async def close(self) -> None:
        """Release the store and lock resources."""
        try:
            await self._store.close()
        finally:
            if self._lock is not None:
                await self._lock.close()

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    @traced_operation("append_to_list")
    async def append_to_list(
        self,
        key: str,
        item: T,
        *,
        item_type: type[T] | None = None,
        sort_key: Callable[[T], Any] | None = None,
        options: CacheWriteOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        """Append ``item`` to the list stored at ``key``.

        Does nothing when the key is absent or holds ``null``; append never
        creates a list. With ``sort_key`` the whole list is re-sorted
        ascending by that key after appending. Returns whether the list was
        written.
        """
        _require_key(key)
        _require(item, "item")
        if sort_key is not None:
            _require_callable(sort_key, "sort_key")

        def mutate(items: list[T]) -> list[T]:
            items.append(item)
            if sort_key is not None:
                items.sort(key=sort_key)
            return items

        return await self._mutate_list(
            "append", key, item_type or type(item), mutate, options, cancel_event
        )

    @traced_operation("update_in_list")
    async def update_in_list(
        self,
        key: str,
        predicate: Callable[[T], bool],
        updated_item: T,
        *,
        item_type: type[T] | None = None,
        sort_key: Callable[[T], Any] | None = None,
        options: CacheWriteOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        """Replace the first item matching ``predicate`` with ``updated_item``.

        Does nothing when the key is absent or holds ``null``. Raises
        ``ItemNotFoundError`` without writing when nothing matches. The item
        keeps its position: ``sort_key`` is validated for symmetry with
        ``append_to_list`` but the list is not re-sorted. Returns whether the
        list was written.
        """
        _require_key(key)
        _require_callable(predicate, "predicate")
        _require(updated_item, "updated_item")
        if sort_key is not None:
            _require_callable(sort_key, "sort_key")

        def mutate(items: list[T]) -> list[T]:
            index = _first_match(items, predicate)
            if index is None:
                raise ItemNotFoundError(key)
            items[index] = updated_item
            return items

        return await self._mutate_list(
            "update", key, item_type or type(updated_item), mutate, options, cancel_event
        )

    @traced_operation("remove_from_list")
    async def remove_from_list(
        self,
        key: str,
        predicate: Callable[[T], bool],
        item_type: type[T] | Any,  # noqa: ANN401
        *,
        options: CacheWriteOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        """Remove the first item matching ``predicate``.

        The item is removed by position, so equal duplicates elsewhere in the
        list are untouched. Does nothing, and writes nothing, when the key is
        absent, holds ``null`` or no item matches. Returns whether the list was
        written.
        """
        _require_key(key)
        _require_callable(predicate, "predicate")
        _require(item_type, "item_type")

        def mutate(items: list[T]) -> list[T] | None:
            index = _first_match(items, predicate)
            if index is None:
                return None
            del items[index]
            return items

        return await self._mutate_list("remove", key, item_type, mutate, options, cancel_event)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _mutate_list(
        self,
        operation: str,
        key: str,
        item_type: Any,  # noqa: ANN401
        mutate: Callable[[list[Any]], list[Any] | None],
        options: CacheWriteOptions | None,
        cancel_event: asyncio.Event | None,
    ) -> bool:
        """Read the list at key, apply ``mutate`` and write the result back.

        ``mutate`` returns the list to write, or None to skip the write.
        Returns whether a write happened.
        """
        policy = self._policy(options)
        async with self._hold(key):
            data = await self._read(key, cancel_event)
            if data is None:
                logger.debug("cache_list_noop", operation=operation, key=key, reason="missing")
                return False
            items = self._decode(key, data, list[item_type] | None)
            if items is None:
                logger.debug("cache_list_noop", operation=operation, key=key, reason="null")
                return False
            updated = mutate(items)
            if updated is None:
                logger.debug("cache_list_noop", operation=operation, key=key, reason="no_match")
                return False
            await self._write(key, updated, policy, cancel_event)
            logger.debug(
                "cache_list_written", operation=operation, key=key, length=len(updated)
            )
            return True

    def _hold(self, key: str) -> AbstractAsyncContextManager[None]:
        if self._lock is None:
            return nullcontext()
        return self._lock.hold(key)

    def _policy(self, options: CacheWriteOptions | None) -> ExpirationPolicy:
        """Resolve write options to the single policy passed to the store."""
        if options is None:
            return self._default_policy
        if not isinstance(options, CacheWriteOptions):
            raise InvalidArgumentError("options", "'options' must be CacheWriteOptions")
        if options.policy is None and options.sliding_expiration is None:
            return self._default_policy
        return options.resolve()

    @staticmethod
    def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError("operation cancelled before store call")

    async def _read(self, key: str, cancel_event: asyncio.Event | None) -> bytes | None:
        self._check_cancelled(cancel_event)
        return await self._store.get(key)

    async def _write(
        self,
        key: str,
        value: object,
        policy: ExpirationPolicy,
        cancel_event: asyncio.Event | None,
    ) -> None:
        data = self._codec.encode(value)
        self._check_cancelled(cancel_event)
        await self._store.set(key, data, policy)

    def _decode(self, key: str, data: bytes, value_type: Any) -> Any:  # noqa: ANN401
        try:
            return self._codec.decode(data, value_type)
        except (ValueError, CodecError) as exc:
            raise CorruptCacheEntryError(key, value_type) from exc
