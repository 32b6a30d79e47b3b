"""Abstract per-key lock interface."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyLock(Protocol):
    """Mutual exclusion scoped to a single cache key."""

    def hold(self, key: str) -> AbstractAsyncContextManager[None]:
        """Return a context manager that holds the lock for ``key``."""
        ...

    async def close(self) -> None:
        """Release any client the lock owns."""
        ...
