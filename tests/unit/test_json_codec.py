"""Unit tests for JsonCodec."""

import json
from dataclasses import dataclass
from typing import Any

import pytest

from entity_store.codec import JsonCodec


@dataclass
class Note:
    """Sample dataclass record."""

    id: int
    text: str
    tags: list[str]


@dataclass
class Point:
    """Nested value."""

    x: int
    y: int = 0


@dataclass
class Shape:
    """Record with nested dataclass and tuple fields."""

    id: int
    origin: Point
    tags: tuple[str, ...]
    corners: list[Point]
    anchor: Point | None = None
    bounds: tuple[int, int] = (0, 0)


class Account:
    """Record with explicit to_dict/from_dict hooks."""

    def __init__(self, id: str, balance: int) -> None:
        self.id = id
        self.balance = balance

    def to_dict(self) -> dict[str, Any]:
        return {"account": self.id, "cents": self.balance}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Account":
        return cls(id=payload["account"], balance=payload["cents"])


class TestJsonCodec:
    """Test suite for JsonCodec."""

    def test_extension(self) -> None:
        assert JsonCodec().extension == ".json"

    def test_encode_dataclass(self) -> None:
        """Dataclasses are serialized field by field."""
        data = JsonCodec().encode(Note(id=1, text="hi", tags=["a"]))

        assert json.loads(data) == {"id": 1, "text": "hi", "tags": ["a"]}

    def test_decode_dataclass(self) -> None:
        """Decoded objects are passed to the type as keyword arguments."""
        note = JsonCodec().decode(b'{"id": 2, "text": "yo", "tags": []}', Note)

        assert note == Note(id=2, text="yo", tags=[])

    def test_non_ascii_kept_verbatim(self) -> None:
        """Non-ASCII text is written as UTF-8, not escaped."""
        data = JsonCodec().encode(Note(id=1, text="héllo", tags=[]))

        assert "héllo".encode("utf-8") in data

    def test_indent_and_sort_keys(self) -> None:
        """Formatting options are passed to json.dumps."""
        data = JsonCodec(indent=2, sort_keys=True).encode({"id": 1, "b": 2, "a": 3})

        assert data.decode("utf-8") == '{\n  "a": 3,\n  "b": 2,\n  "id": 1\n}'

    def test_hooks_take_precedence(self) -> None:
        """to_dict/from_dict are used when a record defines them."""
        codec = JsonCodec()

        data = codec.encode(Account(id="acc-1", balance=500))
        account = codec.decode(data, Account)

        assert json.loads(data) == {"account": "acc-1", "cents": 500}
        assert account.id == "acc-1"
        assert account.balance == 500

    def test_encode_unsupported_type_raises(self) -> None:
        """Objects that are not dataclasses, mappings or hook-bearing fail."""
        with pytest.raises(TypeError, match="Cannot encode int"):
            JsonCodec().encode(42)

    def test_decode_non_object_raises(self) -> None:
        """A JSON document that is not an object cannot become a record."""
        with pytest.raises(ValueError, match="Expected a JSON object for Note"):
            JsonCodec().decode(b"[1, 2]", Note)

    def test_decode_invalid_json_raises(self) -> None:
        with pytest.raises(ValueError):
            JsonCodec().decode(b"{broken", Note)

    def test_nested_dataclass_round_trip(self) -> None:
        """Nested dataclasses and tuples decode back to an equal record."""
        codec = JsonCodec()
        shape = Shape(
            id=1,
            origin=Point(x=5),
            tags=("a", "b"),
            corners=[Point(x=1, y=2), Point(x=3, y=4)],
            anchor=Point(x=9, y=9),
            bounds=(10, 20),
        )

        decoded = codec.decode(codec.encode(shape), Shape)

        assert decoded == shape
        assert isinstance(decoded.origin, Point)
        assert isinstance(decoded.tags, tuple)
        assert all(isinstance(corner, Point) for corner in decoded.corners)

    def test_optional_nested_none(self) -> None:
        codec = JsonCodec()
        shape = Shape(id=2, origin=Point(x=0), tags=(), corners=[])

        assert codec.decode(codec.encode(shape), Shape) == shape

    def test_decode_unknown_field_raises(self) -> None:
        with pytest.raises(TypeError, match="unexpected fields"):
            JsonCodec().decode(b'{"id": 1, "text": "", "tags": [], "extra": 1}', Note)

    def test_decode_nested_unknown_field_raises(self) -> None:
        """Shape errors inside nested records are reported too."""
        data = b'{"id": 1, "origin": {"x": 1, "z": 2}, "tags": [], "corners": []}'

        with pytest.raises(TypeError, match="Point got unexpected fields"):
            JsonCodec().decode(data, Shape)
