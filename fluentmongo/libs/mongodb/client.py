"""Named MongoDB connections and the registry that owns them.

`Registry.get_client(name)` connects lazily on first use and caches the
client per name. Missing configuration and failed connections are fatal: they
are logged at CRITICAL through the injected logger and raised as
ConfigurationError.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

import pymongo
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from fluentmongo.core.errors import ConfigurationError
from fluentmongo.core.settings import DEFAULT_OPERATION_TIMEOUT, MongoOptions, Settings
from fluentmongo.libs.mongodb.collection import Collection
from fluentmongo.observability.interceptor import NOOP_INTERCEPTOR, TracingInterceptor
from fluentmongo.observability.logger import configure_logging, get_logger


class MongoDBClient:
    """A connected driver client bound to one database name."""

    def __init__(
        self,
        client: Any,
        name: str,
        *,
        tracer: TracingInterceptor | None = None,
        timeout: float = DEFAULT_OPERATION_TIMEOUT,
    ) -> None:
        self.client = client
        self.name = name
        self.tracer = tracer or NOOP_INTERCEPTOR
        self.timeout = timeout

    def collection(self, table: str) -> Collection:
        """Return a fresh query builder for `table`."""

        database = self.client[self.name]
        return Collection(
            database,
            database[table],
            tracer=self.tracer,
            timeout=self.timeout,
        )

    def close(self) -> None:
        self.client.close()


class Registry:
    """Named connection options plus the lazily created clients for them."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        tracer: TracingInterceptor | None = None,
        *,
        timeout: float = DEFAULT_OPERATION_TIMEOUT,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self.logger = logger or get_logger()
        self.tracer = tracer or NOOP_INTERCEPTOR
        self.timeout = timeout
        self._client_factory = client_factory
        self.default_name: str | None = None
        self._options: dict[str, MongoOptions] = {}
        self._connections: dict[str, MongoDBClient] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        logger: logging.Logger | None = None,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> "Registry":
        """Build a registry from loaded settings."""

        registry = cls(
            logger=logger or configure_logging(settings.observability),
            tracer=TracingInterceptor(enabled=settings.observability.trace_enabled),
            timeout=settings.mongodb.operation_timeout,
            client_factory=client_factory,
        )
        for name, options in settings.mongodb.connections.items():
            registry.set_options(name, options)
        registry.default_name = settings.mongodb.default_connection
        return registry

    def set_options(self, name: str, options: MongoOptions) -> "Registry":
        self._options[name] = options
        return self

    def _fail(self, message: str, name: str) -> ConfigurationError:
        self.logger.critical(message)
        return ConfigurationError(message, name)

    def _connect(self, name: str, options: MongoOptions) -> MongoDBClient:
        pool_options: dict[str, Any] = {
            "maxPoolSize": options.max_pool_size,
            "minPoolSize": options.min_pool_size,
        }
        if options.max_conn_idle_time:
            pool_options["maxIdleTimeMS"] = options.max_conn_idle_time * 1000

        try:
            client = self._client_factory(options.url, **pool_options)
        except (PyMongoError, ValueError, TypeError) as error:
            raise self._fail(
                f"MongoDB client for '{name}' could not be created: {error}", name
            ) from error

        try:
            with pymongo.timeout(options.connect_timeout):
                client.admin.command("ping")
        except PyMongoError as error:
            client.close()
            raise self._fail(f"MongoDB connection '{name}' failed: {error}", name) from error

        self.logger.info("Connected MongoDB '%s' (database=%s)", name, options.database)
        return MongoDBClient(
            client,
            options.database,
            tracer=self.tracer,
            timeout=self.timeout,
        )

    def get_client(self, name: str | None = None) -> MongoDBClient:
        """Return the client for `name` (or the default connection), connecting on first use."""

        name = name or self.default_name
        if not name:
            raise self._fail("MongoDB configuration name not given and no default set", "")
        connection = self._connections.get(name)
        if connection is not None:
            return connection

        with self._lock:
            connection = self._connections.get(name)
            if connection is not None:
                return connection

            options = self._options.get(name)
            if options is None:
                raise self._fail(f"MongoDB configuration '{name}' not found", name)

            connection = self._connect(name, options)
            self._connections[name] = connection
            return connection

    def close(self) -> None:
        with self._lock:
            for connection in self._connections.values():
                connection.close()
            self._connections.clear()
