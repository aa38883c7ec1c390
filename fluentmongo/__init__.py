"""fluentmongo - record marshaling and a fluent query builder over pymongo."""

from fluentmongo.core.errors import (
    ConfigurationError,
    DecodeError,
    DocumentNotFoundError,
    FluentMongoError,
    GuardViolationError,
    ShapeMismatchError,
)
from fluentmongo.core.settings import MongoOptions, Settings, SettingsError, load_settings
from fluentmongo.core.trace import Span, TraceContext
from fluentmongo.core.types import wire_field
from fluentmongo.libs.mongodb import (
    Collection,
    MongoDBClient,
    Registry,
    marshal_for_insert,
    marshal_for_update,
)
from fluentmongo.observability.interceptor import TracingInterceptor
from fluentmongo.observability.logger import configure_logging, get_logger

__version__ = "0.1.0"

__all__ = [
    "Collection",
    "ConfigurationError",
    "DecodeError",
    "DocumentNotFoundError",
    "FluentMongoError",
    "GuardViolationError",
    "MongoDBClient",
    "MongoOptions",
    "Registry",
    "Settings",
    "SettingsError",
    "ShapeMismatchError",
    "Span",
    "TraceContext",
    "TracingInterceptor",
    "configure_logging",
    "get_logger",
    "load_settings",
    "marshal_for_insert",
    "marshal_for_update",
    "wire_field",
]
