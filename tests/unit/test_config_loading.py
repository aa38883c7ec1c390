"""Tests for settings loading and validation."""

from __future__ import annotations

from pathlib import Path
import textwrap

import pytest

from fluentmongo.core.settings import SettingsError, load_settings


def _write_yaml(path: Path, content: str) -> None:
    path.write_text(textwrap.dedent(content).strip() + "\n", encoding="utf-8")


def test_load_settings_success(tmp_path: Path) -> None:
    config = """
    mongodb:
      default_connection: main
      operation_timeout: 3
      connections:
        main:
          url: mongodb://localhost:27017
          database: testing
          max_pool_size: 100
          min_pool_size: 5
          max_conn_idle_time: 60
        reports:
          url: mongodb://reports:27017
          database: reports
    observability:
      log_level: DEBUG
      trace_enabled: true
      trace_file: ./logs/traces.jsonl
    """
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, config)

    settings = load_settings(settings_path)

    main = settings.mongodb.connections["main"]
    assert main.url == "mongodb://localhost:27017"
    assert main.database == "testing"
    assert main.min_pool_size == 5
    assert main.max_conn_idle_time == 60
    assert settings.mongodb.connections["reports"].max_pool_size == 100
    assert settings.mongodb.default_connection == "main"
    assert settings.mongodb.operation_timeout == 3.0
    assert settings.observability.trace_enabled is True
    assert settings.observability.log_level == "DEBUG"


def test_observability_section_is_optional(tmp_path: Path) -> None:
    config = """
    mongodb:
      connections:
        main:
          url: mongodb://localhost:27017
          database: testing
    """
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, config)

    settings = load_settings(settings_path)

    assert settings.observability.trace_enabled is False
    assert settings.observability.trace_file is None
    assert settings.mongodb.operation_timeout == 5.0


def test_missing_required_field_raises_error(tmp_path: Path) -> None:
    config = """
    mongodb:
      connections:
        main:
          url: mongodb://localhost:27017
    """
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, config)

    with pytest.raises(SettingsError, match="mongodb.connections.main.database"):
        load_settings(settings_path)


def test_missing_mongodb_section_raises_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, "observability:\n  log_level: INFO\n")

    with pytest.raises(SettingsError, match="Missing required section: mongodb"):
        load_settings(settings_path)


def test_wrong_type_raises_error(tmp_path: Path) -> None:
    config = """
    mongodb:
      connections:
        main:
          url: mongodb://localhost:27017
          database: testing
          max_pool_size: "many"
    """
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, config)

    with pytest.raises(SettingsError, match="max_pool_size: expected int"):
        load_settings(settings_path)


def test_unknown_default_connection_raises_error(tmp_path: Path) -> None:
    config = """
    mongodb:
      default_connection: other
      connections:
        main:
          url: mongodb://localhost:27017
          database: testing
    """
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, config)

    with pytest.raises(SettingsError, match="default_connection"):
        load_settings(settings_path)


def test_pool_bounds_are_checked(tmp_path: Path) -> None:
    config = """
    mongodb:
      connections:
        main:
          url: mongodb://localhost:27017
          database: testing
          max_pool_size: 2
          min_pool_size: 10
    """
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, config)

    with pytest.raises(SettingsError, match="min_pool_size exceeds max_pool_size"):
        load_settings(settings_path)


def test_missing_file_raises_error(tmp_path: Path) -> None:
    with pytest.raises(SettingsError, match="Settings file not found"):
        load_settings(tmp_path / "missing.yaml")


def test_invalid_yaml_raises_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text("mongodb: [unclosed\n", encoding="utf-8")

    with pytest.raises(SettingsError, match="Invalid YAML"):
        load_settings(settings_path)


def test_invalid_log_level_raises_error(tmp_path: Path) -> None:
    config = """
    mongodb:
      connections:
        main:
          url: mongodb://localhost:27017
          database: testing
    observability:
      log_level: LOUD
    """
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, config)

    with pytest.raises(SettingsError, match="observability.log_level"):
        load_settings(settings_path)
