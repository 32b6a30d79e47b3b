"""JSON value codec built on pydantic."""

from __future__ import annotations

import functools
import types
import typing
from collections import abc
from typing import Any, get_args, get_origin

import structlog
from pydantic import TypeAdapter
from pydantic.errors import PydanticSchemaGenerationError
from pydantic_core import from_json, to_json

from typed_cache_core.exceptions import CodecError

logger = structlog.get_logger()


@functools.lru_cache(maxsize=256)
def _adapter_for(value_type: Any) -> TypeAdapter[Any] | None:  # noqa: ANN401
    """Build (and memoize) a TypeAdapter, or None if pydantic has no schema for the type."""
    try:
        return TypeAdapter(value_type)
    except PydanticSchemaGenerationError:
        return None


def _object_state(obj: Any) -> dict[str, Any]:  # noqa: ANN401
    """Attributes of an object pydantic cannot serialize on its own."""
    if hasattr(obj, "__dict__"):
        return dict(vars(obj))
    slots: list[str] = []
    for klass in type(obj).__mro__:
        declared = getattr(klass, "__slots__", ())
        slots.extend([declared] if isinstance(declared, str) else declared)
    if not slots:
        msg = f"Cannot encode value of type {type(obj).__name__}"
        raise CodecError(msg)
    return {name: getattr(obj, name) for name in slots if hasattr(obj, name)}


def _field_types(cls: type) -> dict[str, Any]:
    """Annotated attribute types of a class, empty if they cannot be resolved."""
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {}


def _expect(raw: Any, json_type: type, value_type: Any) -> None:  # noqa: ANN401
    if not isinstance(raw, json_type):
        msg = f"Expected JSON {json_type.__name__} for {value_type!r}, got {type(raw).__name__}"
        raise CodecError(msg)


class JsonValueCodec:
    """UTF-8 JSON codec.

    Anything pydantic understands (models, dataclasses, TypedDicts, builtins,
    datetimes, generic containers of those) is validated through a
    ``TypeAdapter``. Plain classes with no schema fall back to being created
    with ``cls.__new__`` and having their attributes assigned directly, so
    types whose ``__init__`` demands arguments or refuses outside callers
    still decode. Set ``allow_non_public_construction=False`` to forbid that.
    """

    def __init__(self, allow_non_public_construction: bool = True) -> None:
        """Initialize with the construction fallback switch."""
        self._allow_non_public_construction = allow_non_public_construction

    def encode(self, value: Any) -> bytes:  # noqa: ANN401
        """Serialize a value to UTF-8 JSON bytes."""
        return to_json(value, fallback=_object_state)

    def decode(self, data: bytes, value_type: Any) -> Any:  # noqa: ANN401
        """Deserialize JSON bytes into ``value_type``."""
        adapter = _adapter_for(value_type)
        if adapter is not None:
            return adapter.validate_json(data)
        self._require_fallback(value_type)
        return self._construct(value_type, from_json(data))

    def _require_fallback(self, value_type: Any) -> None:  # noqa: ANN401
        if not self._allow_non_public_construction:
            msg = f"No schema for {value_type!r} and non-public construction is disabled"
            raise TypeError(msg)

    def _construct(self, value_type: Any, raw: Any) -> Any:  # noqa: ANN401
        """Rebuild ``raw`` JSON data as ``value_type`` without pydantic's help."""
        if raw is None or value_type is Any or value_type is object:
            return raw

        origin = get_origin(value_type)
        args = get_args(value_type)
        if origin in (list, abc.Sequence, abc.MutableSequence):
            _expect(raw, list, value_type)
            item_type = args[0] if args else Any
            return [self._construct(item_type, item) for item in raw]
        if origin is tuple:
            _expect(raw, list, value_type)
            if len(args) == 2 and args[1] is Ellipsis:
                return tuple(self._construct(args[0], item) for item in raw)
            return tuple(self._construct(t, item) for t, item in zip(args, raw, strict=True))
        if origin in (dict, abc.Mapping, abc.MutableMapping):
            _expect(raw, dict, value_type)
            item_type = args[1] if len(args) == 2 else Any
            return {key: self._construct(item_type, item) for key, item in raw.items()}
        if origin in (typing.Union, types.UnionType):
            members = [arg for arg in args if arg is not type(None)]
            if len(members) == 1:
                return self._construct(members[0], raw)
            return raw

        adapter = _adapter_for(value_type)
        if adapter is not None:
            return adapter.validate_python(raw)
        if not isinstance(value_type, type):
            return raw
        return self._instantiate(value_type, raw)

    def _instantiate(self, cls: type, raw: Any) -> Any:  # noqa: ANN401
        """Create ``cls`` without calling ``__init__`` and set its attributes."""
        if not isinstance(raw, dict):
            msg = f"Expected a JSON object for {cls.__name__}, got {type(raw).__name__}"
            raise CodecError(msg)
        obj = cls.__new__(cls)
        hints = _field_types(cls)
        for name, value in raw.items():
            field = self._construct(hints.get(name, Any), value)
            try:
                object.__setattr__(obj, name, field)
            except (AttributeError, TypeError) as exc:
                msg = f"Cannot set field '{name}' on {cls.__name__}"
                raise CodecError(msg) from exc
        logger.debug("codec_fallback_construct", type=cls.__name__)
        return obj
