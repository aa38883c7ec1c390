"""
Observability Layer.

- logger: stderr logger used as the default injected logger
- interceptor: tracing wrapper for terminal query operations
"""
