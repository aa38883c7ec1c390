"""Record marshaling for insert and update payloads.

Values are dispatched on a closed set of shapes:

1. mapping  -> raw tagged map, passed through (insert path injects `_id` in place)
2. record   -> dataclass instance, converted field by field using wire names
3. sequence -> list / tuple, each element marshaled independently
4. anything else passes through unchanged

The marshaler never raises: a record without an identifier field simply gets
no identifier assignment.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from bson import ObjectId

from fluentmongo.core.types import (
    ID_KEY,
    annotation_includes,
    identifier_field,
    is_record,
    record_fields,
)

_ZERO_OBJECT_ID = ObjectId(b"\x00" * 12)


def _is_zero_object_id(value: Any) -> bool:
    return value is None or value == _ZERO_OBJECT_ID


def _encode_value(value: Any) -> Any:
    """Convert nested records to plain wire maps so the driver can encode them."""

    if is_record(value):
        return {
            item.wire_name: _encode_value(getattr(value, item.attr))
            for item in record_fields(type(value))
        }
    if isinstance(value, Mapping):
        return {key: _encode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_encode_value(element) for element in value]
    if isinstance(value, tuple):
        return tuple(_encode_value(element) for element in value)
    return value


def _marshal_record(record: Any, *, for_update: bool) -> dict[str, Any]:
    fields = record_fields(type(record))
    data: dict[str, Any] = {}
    for item in fields:
        if for_update and (item.skip_update or item.wire_name == ID_KEY):
            continue
        data[item.wire_name] = _encode_value(getattr(record, item.attr))

    if for_update:
        return data

    id_field = identifier_field(fields)
    if id_field is None:
        return data

    current = getattr(record, id_field.attr)
    if annotation_includes(id_field.annotation, ObjectId):
        if _is_zero_object_id(current):
            data[ID_KEY] = ObjectId()
    elif annotation_includes(id_field.annotation, str):
        if current is None or current == "":
            data[ID_KEY] = str(ObjectId())
    return data


def _marshal(value: Any, *, for_update: bool) -> Any:
    if isinstance(value, Mapping):
        if not for_update and ID_KEY not in value and isinstance(value, MutableMapping):
            value[ID_KEY] = ObjectId()
        return value

    if is_record(value):
        return _marshal_record(value, for_update=for_update)

    if isinstance(value, list):
        return [_marshal(element, for_update=for_update) for element in value]

    if isinstance(value, tuple):
        return tuple(_marshal(element, for_update=for_update) for element in value)

    return value


def marshal_for_insert(value: Any) -> Any:
    """Marshal `value` for an insert, generating identifiers that are unset.

    Raw mappings without `_id` are updated in place; records are never mutated.
    """

    return _marshal(value, for_update=False)


def marshal_for_update(value: Any) -> Any:
    """Marshal `value` for a `$set` payload.

    Fields tagged `skip_update` and the `_id` field are left out of record
    payloads. Raw mappings pass through unchanged.
    """

    return _marshal(value, for_update=True)
