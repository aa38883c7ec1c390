"""Settings loading and validation.

This module provides a minimal, type-safe configuration loader for the project.

Design principles:
- Fail-fast: missing required fields raise a readable error that includes field path
- No side effects: this module only parses/validates configuration; no network/IO init
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml


DEFAULT_OPERATION_TIMEOUT = 5.0
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SettingsError(ValueError):
    """Raised when settings are missing or invalid."""


@dataclass(frozen=True)
class MongoOptions:
    """Options for one named connection."""

    url: str
    database: str
    max_pool_size: int = 100
    min_pool_size: int = 0
    max_conn_idle_time: int = 0
    connect_timeout: float = 5.0


@dataclass(frozen=True)
class MongoSettings:
    connections: dict[str, MongoOptions]
    default_connection: str | None = None
    operation_timeout: float = DEFAULT_OPERATION_TIMEOUT


@dataclass(frozen=True)
class ObservabilitySettings:
    log_level: str = "INFO"
    trace_enabled: bool = False
    trace_file: str | None = None


@dataclass(frozen=True)
class Settings:
    mongodb: MongoSettings
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)


def _require_section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None or not isinstance(value, Mapping):
        raise SettingsError(f"Missing required section: {key}")
    return value


def _optional_section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SettingsError(f"Invalid section type: {key}")
    return value


def _require(raw: Mapping[str, Any], key: str, path: str) -> Any:
    if key not in raw:
        raise SettingsError(f"Missing required field: {path}")
    return raw[key]


def _as_str(value: Any, path: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"Invalid value for {path}: expected non-empty string")
    return value


def _as_optional_str(value: Any, path: str) -> str | None:
    if value is None:
        return None
    return _as_str(value, path)


def _as_int(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SettingsError(f"Invalid value for {path}: expected int")
    if value < 0:
        raise SettingsError(f"Invalid value for {path}: expected non-negative int")
    return value


def _as_bool(value: Any, path: str) -> bool:
    if not isinstance(value, bool):
        raise SettingsError(f"Invalid value for {path}: expected bool")
    return value


def _as_float(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsError(f"Invalid value for {path}: expected float")
    return float(value)


def _parse_options(name: str, raw: Any) -> MongoOptions:
    path = f"mongodb.connections.{name}"
    if not isinstance(raw, Mapping):
        raise SettingsError(f"Invalid section type: {path}")

    return MongoOptions(
        url=_as_str(_require(raw, "url", f"{path}.url"), f"{path}.url"),
        database=_as_str(_require(raw, "database", f"{path}.database"), f"{path}.database"),
        max_pool_size=_as_int(raw.get("max_pool_size", 100), f"{path}.max_pool_size"),
        min_pool_size=_as_int(raw.get("min_pool_size", 0), f"{path}.min_pool_size"),
        max_conn_idle_time=_as_int(
            raw.get("max_conn_idle_time", 0),
            f"{path}.max_conn_idle_time",
        ),
        connect_timeout=_as_float(raw.get("connect_timeout", 5.0), f"{path}.connect_timeout"),
    )


def validate_settings(settings: Settings) -> None:
    """Validate required fields and basic invariants."""

    mongodb = settings.mongodb
    if not mongodb.connections:
        raise SettingsError("Missing required field: mongodb.connections")
    if mongodb.default_connection and mongodb.default_connection not in mongodb.connections:
        raise SettingsError(
            f"Unknown mongodb.default_connection: '{mongodb.default_connection}'"
        )
    if mongodb.operation_timeout <= 0:
        raise SettingsError("Invalid value for mongodb.operation_timeout: expected > 0")
    for name, options in mongodb.connections.items():
        if options.min_pool_size > options.max_pool_size > 0:
            raise SettingsError(
                f"Invalid pool bounds for mongodb.connections.{name}: "
                "min_pool_size exceeds max_pool_size"
            )
    if settings.observability.log_level.upper() not in LOG_LEVELS:
        raise SettingsError(
            "Invalid value for observability.log_level: expected one of "
            + ", ".join(LOG_LEVELS)
        )


def load_settings(path: str | Path) -> Settings:
    """Load settings from a YAML file."""

    settings_path = Path(path)
    if not settings_path.exists():
        raise SettingsError(f"Settings file not found: {settings_path}")

    try:
        raw_obj = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in settings file: {settings_path}") from e

    if raw_obj is None or not isinstance(raw_obj, Mapping):
        raise SettingsError(f"Invalid settings root: expected mapping in {settings_path}")

    mongodb_raw = _require_section(raw_obj, "mongodb")
    observability_raw = _optional_section(raw_obj, "observability")
    connections_raw = _require_section(mongodb_raw, "connections")

    mongodb = MongoSettings(
        connections={
            str(name): _parse_options(str(name), options)
            for name, options in connections_raw.items()
        },
        default_connection=_as_optional_str(
            mongodb_raw.get("default_connection"),
            "mongodb.default_connection",
        ),
        operation_timeout=_as_float(
            mongodb_raw.get("operation_timeout", DEFAULT_OPERATION_TIMEOUT),
            "mongodb.operation_timeout",
        ),
    )

    observability = ObservabilitySettings(
        log_level=_as_str(
            observability_raw.get("log_level", "INFO"),
            "observability.log_level",
        ),
        trace_enabled=_as_bool(
            observability_raw.get("trace_enabled", False),
            "observability.trace_enabled",
        ),
        trace_file=_as_optional_str(
            observability_raw.get("trace_file"),
            "observability.trace_file",
        ),
    )

    settings = Settings(mongodb=mongodb, observability=observability)

    validate_settings(settings)
    return settings
