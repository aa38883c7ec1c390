"""Record field tagging shared by the marshaler and the decoder.

Records are plain dataclasses. Each field may carry, in its metadata:
- `bson`: the wire name the value is stored under (defaults to the attribute name)
- `skip_update`: when true, the field is never written by update payloads

Example:

    @dataclass
    class Constant:
        id: ObjectId | None = wire_field("_id", default=None)
        name: str = wire_field("name", default="")
        created_at: int = wire_field("created_at", skip_update=True, default=0)
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from typing import Any

WIRE_NAME_KEY = "bson"
SKIP_UPDATE_KEY = "skip_update"
ID_KEY = "_id"


def wire_field(
    name: str | None = None,
    *,
    skip_update: bool = False,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with its wire name and update exclusion flag."""

    metadata = dict(kwargs.pop("metadata", None) or {})
    if name is not None:
        metadata[WIRE_NAME_KEY] = name
    if skip_update:
        metadata[SKIP_UPDATE_KEY] = True
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **kwargs,
    )


@dataclass(frozen=True)
class RecordField:
    """Resolved view of one dataclass field."""

    attr: str
    wire_name: str
    annotation: Any
    skip_update: bool


def is_record(value: Any) -> bool:
    """True for dataclass instances (not dataclass types)."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # unresolved forward references: fall back to the raw annotations
        return {f.name: f.type for f in dataclasses.fields(cls)}


def record_fields(record_type: type) -> list[RecordField]:
    """Fields of a dataclass type in declaration order."""

    hints = _type_hints(record_type)
    out: list[RecordField] = []
    for item in dataclasses.fields(record_type):
        out.append(
            RecordField(
                attr=item.name,
                wire_name=item.metadata.get(WIRE_NAME_KEY) or item.name,
                annotation=hints.get(item.name, item.type),
                skip_update=bool(item.metadata.get(SKIP_UPDATE_KEY, False)),
            )
        )
    return out


def identifier_field(fields: list[RecordField]) -> RecordField | None:
    """The field stored under `_id`, else the field named `id`, else None."""

    for item in fields:
        if item.wire_name == ID_KEY:
            return item
    for item in fields:
        if item.attr == "id":
            return item
    return None


def annotation_includes(annotation: Any, target: type) -> bool:
    """True when `annotation` is `target` or an Optional/Union containing it."""

    if annotation is target:
        return True
    if isinstance(annotation, str):
        return annotation.replace(" ", "") in {
            target.__name__,
            f"Optional[{target.__name__}]",
            f"{target.__name__}|None",
            f"None|{target.__name__}",
        }
    return target in typing.get_args(annotation)
