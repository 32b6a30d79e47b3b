"""Public model re-exports for typed_cache_core."""

from typed_cache_core.models.expiration import (
    CacheWriteOptions,
    ExpirationPolicy,
    is_expired,
    next_expiry,
)

__all__ = [
    "CacheWriteOptions",
    "ExpirationPolicy",
    "is_expired",
    "next_expiry",
]
