"""Error types raised by the query layer.

Driver failures (``pymongo.errors.PyMongoError`` and subclasses) are never
wrapped here; they reach the caller unmodified.
"""

from __future__ import annotations


class FluentMongoError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(FluentMongoError):
    """A named connection is not configured or could not be established."""

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message)
        self.message = message
        self.name = name


class GuardViolationError(FluentMongoError):
    """An operation was refused because it would touch the whole collection."""

    def __init__(self, message: str, method: str):
        super().__init__(message)
        self.message = message
        self.method = method


class ShapeMismatchError(FluentMongoError, TypeError):
    """A decode target does not have the shape the operation requires."""


class DecodeError(FluentMongoError):
    """A document could not be decoded into the requested target."""


class DocumentNotFoundError(FluentMongoError, LookupError):
    """A single-document query matched nothing."""

    def __init__(self, database: str, table: str):
        super().__init__(f"no documents in result ({database}.{table})")
        self.database = database
        self.table = table
