"""Tests for the pydantic-based JSON codec."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import pytest
from pydantic import ValidationError

from tests.mocks.sample_items import Badge, Employee, Locker, Slotted, Task
from typed_cache_core.exceptions import CodecError
from typed_cache_infra.codec.json_codec import JsonValueCodec


@pytest.fixture
def codec() -> JsonValueCodec:
    """Codec with the construction fallback enabled."""
    return JsonValueCodec()


@pytest.mark.unit
class TestEncode:
    """Tests for JsonValueCodec.encode."""

    def test_pydantic_model(self, codec: JsonValueCodec) -> None:
        """Models encode to their field mapping."""
        data = codec.encode(Employee(id=1, name="Ada"))
        assert json.loads(data) == {"id": 1, "name": "Ada"}

    def test_dataclass_list(self, codec: JsonValueCodec) -> None:
        """Lists of dataclasses encode as a JSON array."""
        data = codec.encode([Task(id=1, title="a"), Task(id=2, title="b")])
        assert json.loads(data) == [{"id": 1, "title": "a"}, {"id": 2, "title": "b"}]

    def test_plain_object_uses_attributes(self, codec: JsonValueCodec) -> None:
        """Objects without a schema encode from their instance attributes."""
        data = codec.encode(Badge.issue(7, "ada"))
        assert json.loads(data) == {"id": 7, "holder": "ada"}

    def test_nested_plain_objects(self, codec: JsonValueCodec) -> None:
        """Fallback encoding recurses into attributes."""
        data = codec.encode(Locker(Badge.issue(1, "x"), [3, 4]))
        assert json.loads(data) == {"owner": {"id": 1, "holder": "x"}, "slots": [3, 4]}

    def test_output_is_utf8_bytes(self, codec: JsonValueCodec) -> None:
        """Encoded output is UTF-8 bytes."""
        data = codec.encode({"name": "Zoë"})
        assert isinstance(data, bytes)
        assert json.loads(data.decode("utf-8")) == {"name": "Zoë"}


@pytest.mark.unit
class TestDecode:
    """Tests for JsonValueCodec.decode."""

    def test_pydantic_model(self, codec: JsonValueCodec) -> None:
        """Models validate from JSON."""
        assert codec.decode(b'{"id": 1, "name": "Ada"}', Employee) == Employee(id=1, name="Ada")

    def test_dataclass_list(self, codec: JsonValueCodec) -> None:
        """Generic containers of dataclasses decode."""
        result = codec.decode(b'[{"id": 1, "title": "a"}]', list[Task])
        assert result == [Task(id=1, title="a")]

    def test_builtin_types(self, codec: JsonValueCodec) -> None:
        """Builtins and datetimes decode through pydantic."""
        assert codec.decode(b'"2026-01-01T00:00:00Z"', datetime) == datetime(
            2026, 1, 1, tzinfo=UTC
        )
        assert codec.decode(b'{"a": [1, 2]}', dict[str, list[int]]) == {"a": [1, 2]}

    def test_any_returns_raw_json(self, codec: JsonValueCodec) -> None:
        """Decoding as Any yields plain JSON values."""
        assert codec.decode(b'[{"id": 1}, null]', Any) == [{"id": 1}, None]

    def test_null_list(self, codec: JsonValueCodec) -> None:
        """JSON null decodes to None for optional lists."""
        assert codec.decode(b"null", list[Employee] | None) is None

    def test_schema_mismatch_raises(self, codec: JsonValueCodec) -> None:
        """Bytes of the wrong shape raise a validation error."""
        with pytest.raises(ValidationError):
            codec.decode(b'{"name": "no id"}', Employee)

    def test_invalid_json_raises(self, codec: JsonValueCodec) -> None:
        """Malformed JSON raises a ValueError subclass."""
        with pytest.raises(ValueError):
            codec.decode(b"{not json", Employee)


@pytest.mark.unit
class TestNonPublicConstruction:
    """Tests for decoding classes pydantic cannot build."""

    def test_constructor_is_bypassed(self, codec: JsonValueCodec) -> None:
        """A class whose __init__ refuses callers still decodes."""
        badge = codec.decode(b'{"id": 7, "holder": "ada"}', Badge)
        assert isinstance(badge, Badge)
        assert badge == Badge.issue(7, "ada")

    def test_nested_fields_follow_annotations(self, codec: JsonValueCodec) -> None:
        """Annotated attributes are rebuilt as their declared types."""
        locker = codec.decode(b'{"owner": {"id": 1, "holder": "x"}, "slots": [3]}', Locker)
        assert isinstance(locker.owner, Badge)
        assert locker.owner == Badge.issue(1, "x")
        assert locker.slots == [3]

    def test_optional_list_of_plain_objects(self, codec: JsonValueCodec) -> None:
        """Containers of plain objects decode item by item."""
        result = codec.decode(b'[{"id": 1, "holder": "a"}, {"id": 2, "holder": "b"}]',
                              list[Badge] | None)
        assert result == [Badge.issue(1, "a"), Badge.issue(2, "b")]
        assert codec.decode(b"null", list[Badge] | None) is None

    def test_wrong_shape_raises_codec_error(self, codec: JsonValueCodec) -> None:
        """A JSON scalar where an object is required is rejected."""
        with pytest.raises(CodecError):
            codec.decode(b"42", Badge)
        with pytest.raises(CodecError):
            codec.decode(b'{"id": 1}', list[Badge])

    def test_fallback_disabled(self) -> None:
        """With the fallback switched off, schema-less types are refused."""
        codec = JsonValueCodec(allow_non_public_construction=False)
        with pytest.raises(TypeError):
            codec.decode(b'{"id": 7, "holder": "ada"}', Badge)

    def test_fallback_disabled_still_decodes_models(self) -> None:
        """Switching the fallback off does not affect pydantic types."""
        codec = JsonValueCodec(allow_non_public_construction=False)
        assert codec.decode(b'{"id": 1}', Employee) == Employee(id=1)

    def test_roundtrip_plain_object(self, codec: JsonValueCodec) -> None:
        """Encode then decode restores an equal plain object."""
        original = Locker(Badge.issue(5, "z"), [1, 2])
        restored = codec.decode(codec.encode(original), Locker)
        assert restored.owner == original.owner
        assert restored.slots == original.slots

    def test_slotted_roundtrip(self, codec: JsonValueCodec) -> None:
        """Classes with __slots__ encode from their slots and decode back."""
        assert json.loads(codec.encode(Slotted(4))) == {"id": 4}
        assert codec.decode(b'{"id": 4}', Slotted) == Slotted(4)

    def test_unknown_field_on_slotted_class(self, codec: JsonValueCodec) -> None:
        """A stored field with no matching slot is a codec error, not AttributeError."""
        with pytest.raises(CodecError) as exc_info:
            codec.decode(b'{"id": 1, "extra": 2}', Slotted)
        assert isinstance(exc_info.value.__cause__, AttributeError)
