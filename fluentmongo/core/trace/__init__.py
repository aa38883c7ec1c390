"""
Trace Module.

This package contains tracing components:
- Trace context
- Spans
"""

from fluentmongo.core.trace.trace_context import Span, TraceContext

__all__ = ['Span', 'TraceContext']
