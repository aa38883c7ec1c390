"""
Libs Layer - Driver adapters.

This package contains the adapters over third-party clients:
- mongodb: marshaling, decoding, query builder, connection registry
"""
