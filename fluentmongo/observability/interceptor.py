"""Tracing interceptor for terminal query operations.

A span is started only when tracing is enabled AND the caller's trace has an
active span to parent under. In every other case `span()` yields None without
building any span object.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from fluentmongo.core.trace import Span, TraceContext

SPAN_NAME = "mongodb"


class TracingInterceptor:
    """Wraps database calls in child spans of the caller's active span."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled

    def parent_span(self, trace: TraceContext | None) -> Span | None:
        """Active span of `trace`, or None when no child span should be started."""

        if not self.enabled or trace is None or trace.finished:
            return None
        return trace.active_span

    @contextmanager
    def span(
        self,
        trace: TraceContext | None,
        database: str,
        table: str,
        method: str,
        **params: Any,
    ) -> Iterator[Span | None]:
        parent = self.parent_span(trace)
        if parent is None:
            yield None
            return

        span = trace.start_span(SPAN_NAME, child_of=parent)
        span.set_tag("span.kind", "client")
        span.set_tag("peer.service", SPAN_NAME)
        span.set_tag("database", database)
        span.set_tag("table", table)
        span.set_tag("method", method)
        for key, value in params.items():
            if value is not None:
                span.set_tag(key, value)

        try:
            with trace.activate(span):
                yield span
        except BaseException:
            span.set_tag("error", True)
            raise
        finally:
            span.finish()


NOOP_INTERCEPTOR = TracingInterceptor(enabled=False)
