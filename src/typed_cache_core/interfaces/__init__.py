"""Public interface re-exports for typed_cache_core."""

from typed_cache_core.interfaces.codec import ValueCodec
from typed_cache_core.interfaces.lock import KeyLock
from typed_cache_core.interfaces.store import ByteStore

__all__ = [
    "ByteStore",
    "KeyLock",
    "ValueCodec",
]
