"""Fluent query builder bound to one collection.

Clause setters (`where`, `limit`, `skip`, `sort`, `project`) only store state
and return the builder. Every terminal operation reads that state, runs one
driver call under a time ceiling and the tracing interceptor, and then resets
the state in a `finally` block: after any terminal operation returns or
raises, the builder holds no clauses.

The time ceiling is `pymongo.timeout(self.timeout)`. It nests inside a
caller's own `pymongo.timeout` block (the smaller deadline wins), except when
the caller's deadline has already passed: then the operation runs under its
own ceiling alone.

A builder is not thread-safe. Obtain a fresh one per logical query from
`MongoDBClient.collection()`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from typing import Any, Callable, Iterator

import pymongo
from pymongo import _csot
from pymongo.results import (
    InsertManyResult,
    InsertOneResult,
    UpdateResult,
)

from fluentmongo.core.errors import DocumentNotFoundError, GuardViolationError
from fluentmongo.core.settings import DEFAULT_OPERATION_TIMEOUT
from fluentmongo.core.trace import TraceContext
from fluentmongo.libs.mongodb.decoder import decode_many, decode_one
from fluentmongo.libs.mongodb.marshaler import marshal_for_insert, marshal_for_update
from fluentmongo.observability.interceptor import NOOP_INTERCEPTOR, TracingInterceptor

logger = logging.getLogger(__name__)

Tags = Callable[[], dict[str, Any]]


def _as_pairs(value: Any, what: str) -> list[tuple[str, Any]]:
    """Normalize a mapping or an iterable of (key, value) pairs into a list of pairs."""

    if isinstance(value, Mapping):
        return list(value.items())
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise TypeError(f"{what} must be a mapping or a sequence of (key, value) pairs")

    pairs: list[tuple[str, Any]] = []
    for index, item in enumerate(value):
        if not isinstance(item, (tuple, list)) or len(item) != 2:
            raise TypeError(f"{what}[{index}] must be a (key, value) pair")
        key, item_value = item
        if not isinstance(key, str):
            raise TypeError(f"{what}[{index}] key must be a string")
        pairs.append((key, item_value))
    return pairs


def _as_count(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an int")
    return value


@contextmanager
def _unexpired_deadline() -> Iterator[None]:
    """Drop the caller's deadline for the block when it has already passed."""

    remaining = _csot.remaining()
    if remaining is None or remaining > 0:
        yield
        return

    logger.debug("caller deadline expired %.3fs ago, using a fresh one", -remaining)
    token = _csot.DEADLINE.set(float("inf"))
    try:
        yield
    finally:
        _csot.DEADLINE.reset(token)


class Collection:
    """Chainable query state plus the terminal operations that consume it."""

    def __init__(
        self,
        database: Any,
        table: Any,
        *,
        tracer: TracingInterceptor | None = None,
        timeout: float = DEFAULT_OPERATION_TIMEOUT,
    ) -> None:
        self.database = database
        self.table = table
        self.tracer = tracer or NOOP_INTERCEPTOR
        self.timeout = timeout
        self.reset()

    def reset(self) -> None:
        """Clear every clause. The bound collection handle is kept."""

        self._filter: list[tuple[str, Any]] = []
        self._limit = 0
        self._skip = 0
        self._sort: list[tuple[str, Any]] = []
        self._projection: dict[str, Any] | None = None

    # ------------------------------------------------------------------
    # clause setters
    # ------------------------------------------------------------------

    def where(self, filter: Any) -> "Collection":
        """Set the filter, e.g. `{"name": "pi"}` or `[("name", "pi")]`."""
        self._filter = _as_pairs(filter, "filter")
        return self

    def limit(self, n: int) -> "Collection":
        self._limit = _as_count(n, "limit")
        return self

    def skip(self, n: int) -> "Collection":
        self._skip = _as_count(n, "skip")
        return self

    def sort(self, sorts: Any) -> "Collection":
        """Set sort order, e.g. `[("created_at", -1)]`."""
        self._sort = _as_pairs(sorts, "sort")
        return self

    def project(self, fields: Mapping[str, Any]) -> "Collection":
        """Select returned fields, e.g. `{"name": 1, "_id": 0}`."""
        if not isinstance(fields, Mapping):
            raise TypeError("projection must be a mapping of field -> flag")
        self._projection = dict(fields)
        return self

    fields = project

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.table.name

    @property
    def database_name(self) -> str:
        return self.database.name

    def _filter_doc(self) -> dict[str, Any]:
        return dict(self._filter)

    def _sort_keys(self) -> list[tuple[str, Any]] | None:
        return list(self._sort) if self._sort else None

    def _read_tags(self, *, limit: bool) -> dict[str, Any]:
        tags = {
            "filter": self._filter_doc(),
            "skip": self._skip,
            "sort": self._sort_keys(),
            "fields": self._projection,
        }
        if limit:
            tags["limit"] = self._limit
        return tags

    @contextmanager
    def _operation(
        self, trace: TraceContext | None, method: str, tags: Tags | None = None
    ) -> Iterator[None]:
        """Interceptor span plus time ceiling around one driver call.

        `tags` is only called when a span will actually be started.
        """

        logger.debug("%s on %s.%s", method, self.database_name, self.name)
        params: dict[str, Any] = {}
        if tags is not None and self.tracer.parent_span(trace) is not None:
            params = tags()
        with self.tracer.span(trace, self.database_name, self.name, method, **params):
            with _unexpired_deadline(), pymongo.timeout(self.timeout):
                yield

    # ------------------------------------------------------------------
    # index administration
    # ------------------------------------------------------------------

    def create_index(
        self, keys: Any, *, trace: TraceContext | None = None, **options: Any
    ) -> str:
        """Create one index, e.g. `create_index([("name", 1)], unique=True)`."""

        try:
            index_keys = keys if isinstance(keys, str) else _as_pairs(keys, "keys")
            with self._operation(
                trace, "CreateIndex", lambda: {"keys": index_keys, "options": options or None}
            ):
                return self.table.create_index(index_keys, **options)
        finally:
            self.reset()

    def list_indexes(self, *, trace: TraceContext | None = None) -> list[dict[str, Any]]:
        try:
            with self._operation(trace, "ListIndexes"):
                cursor = self.table.list_indexes()
                try:
                    return [dict(index) for index in cursor]
                finally:
                    cursor.close()
        finally:
            self.reset()

    def drop_index(
        self, name: str, *, trace: TraceContext | None = None, **options: Any
    ) -> None:
        try:
            with self._operation(
                trace, "DropIndex", lambda: {"indexname": name, "options": options or None}
            ):
                self.table.drop_index(name, **options)
        finally:
            self.reset()

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def insert_one(self, document: Any, *, trace: TraceContext | None = None) -> InsertOneResult:
        """Insert one record or mapping; an unset identifier is generated first."""

        try:
            data = marshal_for_insert(document)
            with self._operation(trace, "InsertOne", lambda: {"data": data}):
                return self.table.insert_one(data)
        finally:
            self.reset()

    def insert_many(
        self, documents: Iterable[Any], *, trace: TraceContext | None = None
    ) -> InsertManyResult:
        """Insert a batch. Partial failure follows the driver's ordered-insert semantics."""

        try:
            data = marshal_for_insert(list(documents))
            with self._operation(trace, "InsertMany", lambda: {"data": data}):
                return self.table.insert_many(data)
        finally:
            self.reset()

    def upsert_many(
        self, documents: Any, *, trace: TraceContext | None = None
    ) -> UpdateResult:
        """Update every document matching the current filter, inserting when none match.

        `documents` is sent as-is (an update pipeline). There is no empty-filter
        guard: call `where()` first or the whole collection is targeted.
        """

        try:
            with self._operation(
                trace, "UpdateOrInsert", lambda: {"filter": self._filter_doc()}
            ):
                return self.table.update_many(self._filter_doc(), documents, upsert=True)
        finally:
            self.reset()

    def update_one(self, document: Any, *, trace: TraceContext | None = None) -> UpdateResult:
        """`$set` the marshaled record on the first document matching the filter.

        No empty-filter guard, unlike `delete()`.
        """

        try:
            update = {"$set": marshal_for_update(document)}
            with self._operation(
                trace, "UpdateOne", lambda: {"filter": self._filter_doc(), "update": update}
            ):
                return self.table.update_one(self._filter_doc(), update)
        finally:
            self.reset()

    def update_one_raw(
        self, document: Any, *, trace: TraceContext | None = None, **options: Any
    ) -> UpdateResult:
        """Send `document` unchanged, so any update operator may be used.

        `options` go straight to the driver (`upsert`, `array_filters`, `hint`, ...).
        """

        try:
            with self._operation(
                trace,
                "UpdateOneRaw",
                lambda: {"filter": self._filter_doc(), "update": document},
            ):
                return self.table.update_one(self._filter_doc(), document, **options)
        finally:
            self.reset()

    def update_many(self, document: Any, *, trace: TraceContext | None = None) -> UpdateResult:
        """`$set` the marshaled record on every document matching the filter.

        No empty-filter guard, unlike `delete()`.
        """

        try:
            update = {"$set": marshal_for_update(document)}
            with self._operation(
                trace, "UpdateMany", lambda: {"filter": self._filter_doc(), "update": update}
            ):
                return self.table.update_many(self._filter_doc(), update)
        finally:
            self.reset()

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def find_one(self, target: Any, *, trace: TraceContext | None = None) -> Any:
        """Decode the first match into `target` and return it.

        Honors filter, skip, sort and projection. Raises DocumentNotFoundError
        when nothing matches.
        """

        try:
            with self._operation(trace, "FindOne", lambda: self._read_tags(limit=False)):
                document = self.table.find_one(
                    self._filter_doc(),
                    projection=self._projection,
                    skip=self._skip,
                    sort=self._sort_keys(),
                )
            if document is None:
                raise DocumentNotFoundError(self.database_name, self.name)
            return decode_one(document, target)
        finally:
            self.reset()

    def find_many(
        self, target: Any, model: Any = dict, *, trace: TraceContext | None = None
    ) -> None:
        """Replace the content of the list `target` with every match, decoded as `model`.

        Honors filter, skip, limit, sort and projection. A `target` that is not a
        mutable sequence raises ShapeMismatchError and is left untouched.
        """

        try:
            with self._operation(trace, "FindMany", lambda: self._read_tags(limit=True)):
                cursor = self.table.find(
                    self._filter_doc(),
                    projection=self._projection,
                    skip=self._skip,
                    limit=self._limit,
                    sort=self._sort_keys(),
                )
                decode_many(cursor, target, model)
        finally:
            self.reset()

    def count(self, *, trace: TraceContext | None = None) -> int:
        """Number of documents matching the current filter."""

        try:
            with self._operation(trace, "Count", lambda: {"filter": self._filter_doc()}):
                return self.table.count_documents(self._filter_doc())
        finally:
            self.reset()

    def aggregate(
        self,
        pipeline: list[Mapping[str, Any]],
        target: Any,
        model: Any = dict,
        *,
        trace: TraceContext | None = None,
    ) -> None:
        """Run `pipeline` and replace the content of `target` with its results."""

        try:
            with self._operation(trace, "Aggregate", lambda: {"data": pipeline}):
                cursor = self.table.aggregate(pipeline)
                decode_many(cursor, target, model)
        finally:
            self.reset()

    # ------------------------------------------------------------------
    # deletes
    # ------------------------------------------------------------------

    def delete(self, *, trace: TraceContext | None = None) -> int:
        """Delete every document matching the filter and return how many went.

        Refuses to run without a filter.
        """

        try:
            with self._operation(trace, "Delete", lambda: {"filter": self._filter_doc()}):
                if not self._filter:
                    logger.warning(
                        "refused unfiltered delete on %s.%s", self.database_name, self.name
                    )
                    raise GuardViolationError(
                        "you can't delete all documents, it's very dangerous", "Delete"
                    )
                result = self.table.delete_many(self._filter_doc())
                return result.deleted_count
        finally:
            self.reset()

    def drop(self, *, trace: TraceContext | None = None) -> None:
        """Drop the whole collection. Clauses are ignored."""

        try:
            with self._operation(trace, "Drop"):
                self.table.drop()
        finally:
            self.reset()
