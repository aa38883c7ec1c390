"""Smoke tests for package imports.

This module verifies that all key packages can be imported successfully.
It serves as a basic sanity check for the project structure.
"""

import pytest


@pytest.mark.unit
class TestSmokeImports:
    """Smoke tests to verify all key packages are importable."""

    def test_import_package(self) -> None:
        """Test that the top-level package exposes its public names."""
        import fluentmongo
        assert fluentmongo.Collection is not None
        assert fluentmongo.Registry is not None

    def test_import_core(self) -> None:
        from fluentmongo import core
        assert core is not None

    def test_import_core_trace(self) -> None:
        from fluentmongo.core import trace
        assert trace is not None

    def test_import_libs_mongodb(self) -> None:
        from fluentmongo.libs import mongodb
        assert mongodb is not None

    def test_import_observability(self) -> None:
        from fluentmongo import observability
        assert observability is not None
