"""Decode driver documents into caller-supplied targets."""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Iterable, Mapping, MutableMapping, MutableSequence, Sequence
from typing import Any

from fluentmongo.core.errors import DecodeError, ShapeMismatchError
from fluentmongo.core.types import is_record, record_fields

_LIST_ORIGINS = (list, Sequence, MutableSequence)
_MAP_ORIGINS = (dict, Mapping, MutableMapping)


def _unwrap_optional(annotation: Any) -> Any:
    """`Optional[X]` -> `X`; any other annotation is returned as is."""

    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        candidates = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(candidates) == 1:
            return candidates[0]
    return annotation


def _decode_value(value: Any, annotation: Any) -> Any:
    """Rebuild nested records from their wire maps; other values pass through."""

    if value is None:
        return None

    annotation = _unwrap_optional(annotation)
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is None:
        if dataclasses.is_dataclass(annotation) and isinstance(value, Mapping):
            return decode_one(value, annotation)
        return value
    if not args:
        return value
    if origin in _LIST_ORIGINS and isinstance(value, list):
        return [_decode_value(element, args[0]) for element in value]
    if origin is tuple and isinstance(value, (list, tuple)):
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(_decode_value(element, args[0]) for element in value)
        if len(args) == len(value):
            return tuple(_decode_value(element, arg) for element, arg in zip(value, args))
    if origin in _MAP_ORIGINS and len(args) == 2 and isinstance(value, Mapping):
        return {key: _decode_value(item, args[1]) for key, item in value.items()}
    return value


def _field_values(document: Mapping[str, Any], record_type: type) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for item in record_fields(record_type):
        if item.wire_name in document:
            values[item.attr] = _decode_value(document[item.wire_name], item.annotation)
    return values


def decode_one(document: Mapping[str, Any], target: Any) -> Any:
    """Decode a single document into `target` and return the populated value.

    `target` may be a dataclass type, a dataclass instance (populated in place),
    a mapping type, or a mutable mapping instance (replaced in place). Document
    keys without a matching field are ignored.
    """

    if not isinstance(document, Mapping):
        raise DecodeError(f"cannot decode {type(document).__name__}, expected a document")

    if isinstance(target, type) and dataclasses.is_dataclass(target):
        try:
            return target(**_field_values(document, target))
        except TypeError as error:
            raise DecodeError(
                f"cannot decode document into {target.__name__}: {error}"
            ) from error

    if is_record(target):
        for attr, value in _field_values(document, type(target)).items():
            setattr(target, attr, value)
        return target

    if isinstance(target, type) and issubclass(target, Mapping):
        try:
            return target(document)
        except TypeError as error:
            raise DecodeError(
                f"cannot decode document into {target.__name__}: {error}"
            ) from error

    if isinstance(target, MutableMapping):
        target.clear()
        target.update(document)
        return target

    raise DecodeError(
        f"cannot decode into {type(target).__name__}: "
        "expected a dataclass, a dataclass instance or a mapping"
    )


def decode_many(cursor: Iterable[Mapping[str, Any]], target: Any, model: Any = dict) -> None:
    """Drain `cursor` into `target`, one freshly built `model` value per document.

    `target` must be a mutable sequence. Its previous content is replaced only
    once every document decoded; on any error it is left untouched. The cursor
    is closed on every path.
    """

    try:
        if not isinstance(target, MutableSequence):
            raise ShapeMismatchError(
                f"result argument must be a mutable sequence, got {type(target).__name__}"
            )
        if not isinstance(model, type):
            raise ShapeMismatchError("model must be a type, e.g. a dataclass or dict")

        accumulated: list[Any] = []
        for document in cursor:
            accumulated.append(decode_one(document, model))
        target[:] = accumulated
    finally:
        close = getattr(cursor, "close", None)
        if callable(close):
            close()
