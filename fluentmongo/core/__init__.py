"""
Core Layer - Shared contracts.

This package contains:
- Configuration management (settings.py)
- Error taxonomy (errors.py)
- Record field tagging (types.py)
- Trace context (trace/)
"""

from fluentmongo.core.types import RecordField, wire_field

__all__ = ["RecordField", "wire_field"]
