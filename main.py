"""Application entrypoint.

Loads settings, connects the default MongoDB connection and reports how many
documents a collection holds. With tracing enabled the count runs under a
root span and the trace is appended to `observability.trace_file`.
"""

from __future__ import annotations

import sys

from fluentmongo.core.errors import ConfigurationError
from fluentmongo.core.settings import SettingsError, load_settings
from fluentmongo.core.trace import TraceContext
from fluentmongo.libs.mongodb import Registry
from fluentmongo.observability.logger import configure_logging, get_logger


def main() -> None:
    logger = get_logger("fluentmongo")

    try:
        settings = load_settings("config/settings.yaml")
    except SettingsError as e:
        logger.error(str(e))
        raise SystemExit(1) from e

    logger = configure_logging(settings.observability)
    logger.info(
        "Settings loaded (connections=%s, trace=%s)",
        ", ".join(sorted(settings.mongodb.connections)),
        settings.observability.trace_enabled,
    )

    registry = Registry.from_settings(settings, logger=logger)
    try:
        client = registry.get_client()
    except ConfigurationError as e:
        raise SystemExit(1) from e

    table = sys.argv[1] if len(sys.argv) > 1 else "testing"
    trace = TraceContext(collection=table, log_file=settings.observability.trace_file)
    try:
        with trace.activate(trace.start_span("main")) as root:
            total = client.collection(table).count(trace=trace)
            root.finish()
        logger.info("%s.%s holds %d documents", client.name, table, total)
    finally:
        trace.finish()
        registry.close()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(130)
