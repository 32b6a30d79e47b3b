"""Abstract value codec interface."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ValueCodec(Protocol):
    """Reversible value <-> bytes serializer."""

    def encode(self, value: Any) -> bytes:  # noqa: ANN401
        """Serialize a value to bytes."""
        ...

    def decode(self, data: bytes, value_type: Any) -> Any:  # noqa: ANN401
        """Deserialize bytes produced by ``encode`` back into ``value_type``."""
        ...
