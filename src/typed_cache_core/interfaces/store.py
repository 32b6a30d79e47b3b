"""Abstract byte store interface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typed_cache_core.models.expiration import ExpirationPolicy


@runtime_checkable
class ByteStore(Protocol):
    """Key to bytes cache; implementations can be swapped."""

    async def get(self, key: str) -> bytes | None:
        """Retrieve the bytes for a key, or None if missing/expired.

        A successful read resets any sliding expiration.
        """
        ...

    async def set(self, key: str, value: bytes, policy: ExpirationPolicy) -> None:
        """Store bytes under a key, replacing any existing entry."""
        ...

    async def refresh(self, key: str) -> None:
        """Reset the sliding expiration of a key without reading it."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a key from the store."""
        ...

    async def close(self) -> None:
        """Release connections or files held by the store."""
        ...
