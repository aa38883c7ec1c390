"""Unit tests for the result decoder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import pytest
from bson import ObjectId

from fluentmongo.core.errors import DecodeError, ShapeMismatchError
from fluentmongo.core.types import wire_field
from fluentmongo.libs.mongodb.decoder import decode_many, decode_one
from fluentmongo.libs.mongodb.marshaler import marshal_for_insert


@dataclass
class Constant:
    id: Optional[ObjectId] = wire_field("_id", default=None)
    name: str = wire_field("name", default="")
    value: float = wire_field("value", default=0.0)


@dataclass
class Required:
    name: str = wire_field("name")


@dataclass
class Point:
    x: int = wire_field("px", default=0)
    y: int = wire_field("py", default=0)


@dataclass
class Shape:
    name: str = wire_field("name", default="")
    origin: Optional[Point] = wire_field("origin", default=None)
    vertices: list[Point] = wire_field("vertices", default_factory=list)
    anchors: dict[str, Point] = wire_field("anchors", default_factory=dict)
    bounds: tuple[Point, Point] | None = wire_field("bounds", default=None)
    extra: dict = wire_field("extra", default_factory=dict)


@dataclass
class Holder:
    items: list[Required] = wire_field("items", default_factory=list)


class FakeCursor:
    """Iterable stand-in for a driver cursor that records close()."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self.documents = documents
        self.closed = False

    def __iter__(self):
        return iter(self.documents)

    def close(self) -> None:
        self.closed = True


@pytest.mark.unit
class TestDecodeOne:
    def test_into_dataclass_type(self) -> None:
        oid = ObjectId()
        result = decode_one({"_id": oid, "name": "pi", "value": 3.14159, "extra": 1}, Constant)

        assert result == Constant(id=oid, name="pi", value=3.14159)

    def test_into_dataclass_instance_in_place(self) -> None:
        target = Constant()
        result = decode_one({"name": "pi", "value": 3.14159}, target)

        assert result is target
        assert target.value == 3.14159
        assert target.id is None

    def test_into_dict_type(self) -> None:
        assert decode_one({"a": 1}, dict) == {"a": 1}

    def test_into_mapping_instance_replaces_content(self) -> None:
        target = {"stale": True}
        result = decode_one({"a": 1}, target)

        assert result is target
        assert target == {"a": 1}

    def test_missing_required_field_raises(self) -> None:
        with pytest.raises(DecodeError, match="Required"):
            decode_one({"other": 1}, Required)

    @pytest.mark.parametrize("target", [5, "text", [1, 2], None])
    def test_unsupported_target_raises(self, target) -> None:
        with pytest.raises(DecodeError):
            decode_one({"a": 1}, target)

    def test_non_document_raises(self) -> None:
        with pytest.raises(DecodeError, match="expected a document"):
            decode_one([("a", 1)], dict)  # type: ignore[arg-type]

    def test_nested_records_round_trip(self) -> None:
        shape = Shape(
            name="square",
            origin=Point(3, 4),
            vertices=[Point(0, 0), Point(1, 1)],
            anchors={"center": Point(2, 2)},
            bounds=(Point(0, 0), Point(5, 5)),
            extra={"color": "red"},
        )

        out = decode_one(marshal_for_insert(shape), Shape)

        assert out == shape
        assert isinstance(out.origin, Point)
        assert all(isinstance(vertex, Point) for vertex in out.vertices)

    def test_nested_wire_names_map_back_to_attributes(self) -> None:
        out = decode_one({"origin": {"px": 7, "py": 8}, "vertices": [{"px": 1}]}, Shape)

        assert out.origin == Point(7, 8)
        assert out.vertices == [Point(1, 0)]

    def test_missing_optional_nested_record_stays_none(self) -> None:
        out = decode_one({"name": "dot", "origin": None}, Shape)

        assert out.origin is None

    def test_invalid_nested_document_raises(self) -> None:
        with pytest.raises(DecodeError, match="Required"):
            decode_one({"items": [{"other": 1}]}, Holder)


@pytest.mark.unit
class TestDecodeMany:
    def test_replaces_target_content(self) -> None:
        cursor = FakeCursor([{"name": "pi", "value": 3.14}, {"name": "e", "value": 2.71}])
        target: list[Any] = ["stale"]
        original = target

        decode_many(cursor, target, Constant)

        assert target is original
        assert [item.name for item in target] == ["pi", "e"]
        assert cursor.closed

    def test_default_model_is_dict(self) -> None:
        target: list[Any] = []
        decode_many(FakeCursor([{"a": 1}]), target)

        assert target == [{"a": 1}]

    def test_empty_cursor_clears_target(self) -> None:
        target: list[Any] = [1, 2]
        decode_many(FakeCursor([]), target)

        assert target == []

    @pytest.mark.parametrize("target", [(), {}, None, "text"])
    def test_non_sequence_target_raises(self, target) -> None:
        cursor = FakeCursor([{"a": 1}])

        with pytest.raises(ShapeMismatchError, match="mutable sequence"):
            decode_many(cursor, target)
        assert cursor.closed

    def test_shape_mismatch_is_a_type_error(self) -> None:
        with pytest.raises(TypeError):
            decode_many(FakeCursor([]), ())

    def test_decode_failure_leaves_target_untouched(self) -> None:
        cursor = FakeCursor([{"name": "ok"}, {"other": 1}])
        target: list[Any] = ["keep"]

        with pytest.raises(DecodeError):
            decode_many(cursor, target, Required)

        assert target == ["keep"]
        assert cursor.closed
