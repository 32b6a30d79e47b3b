"""Custom exception hierarchy for typed-cache."""

from __future__ import annotations


class TypedCacheError(Exception):
    """Base exception for all typed-cache errors."""


class InvalidArgumentError(TypedCacheError, ValueError):
    """Raised when a required argument is missing, before any store I/O."""

    def __init__(self, param_name: str, message: str | None = None) -> None:
        """Record the offending parameter name."""
        self.param_name = param_name
        super().__init__(message or f"'{param_name}' must not be None")


class CodecError(TypedCacheError):
    """Raised when the codec cannot encode or construct a value."""


class CorruptCacheEntryError(TypedCacheError):
    """Raised when stored bytes cannot be decoded as the requested type."""

    def __init__(self, key: str, expected_type: object) -> None:
        """Record the key and the type the caller asked for."""
        self.key = key
        self.expected_type = expected_type
        super().__init__(f"Cache entry '{key}' could not be decoded as {expected_type!r}")


class ItemNotFoundError(TypedCacheError, LookupError):
    """Raised when updating a list and no item matches the predicate."""

    def __init__(self, key: str) -> None:
        """Record the key of the list that was searched."""
        self.key = key
        super().__init__(f"No item in list '{key}' matches the predicate")


class OperationCancelledError(TypedCacheError):
    """Raised when a cancel event is set before a store call starts."""
