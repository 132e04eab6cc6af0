"""
Configuration Loader (``usage_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``usage_config.schema`` dataclasses.  Services never call this directly;
the runtime entry point is ``usage_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``validate_config`` collects every problem before raising, so one
  ``InvalidConfigurationError`` lists all of them.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id`` / ``version`` or invalid values
  -> ``InvalidConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from usage_config.schema import (
    AlertPolicy,
    BackfillPolicy,
    DashboardPolicy,
    ReportingLabels,
    UsageAccountingConfig,
)
from usage_kernel.exceptions import InvalidConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization (deterministic)."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    return value if isinstance(value, dict) else {}


def validate_config_data(data: dict[str, Any]) -> list[str]:
    """Return every validation error found in a raw configuration dict."""
    errors: list[str] = []
    if not isinstance(data.get("config_id"), str) or not data["config_id"].strip():
        errors.append("config_id must be a non-empty string")
    if not isinstance(data.get("version"), int) or isinstance(data.get("version"), bool):
        errors.append("version must be an integer")

    for name in ("reporting", "backfill", "alerts", "dashboard"):
        if name in data and data[name] is not None and not isinstance(data[name], dict):
            errors.append(f"{name} must be a mapping")

    reporting = _section(data, "reporting")
    for key in ("unlinked_label", "uncategorized_label", "user_placeholder"):
        if key in reporting and (
            not isinstance(reporting[key], str) or not reporting[key].strip()
        ):
            errors.append(f"reporting.{key} must be a non-empty string")

    def _int(section: dict[str, Any], key: str, default: int, minimum: int) -> int:
        value = section.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            errors.append(f"{key} must be an integer >= {minimum}")
            return default
        return value

    backfill = _section(data, "backfill")
    default_limit = _int(backfill, "default_limit", 2000, 1)
    max_limit = _int(backfill, "max_limit", 5000, 1)
    if default_limit > max_limit:
        errors.append("backfill.default_limit must not exceed backfill.max_limit")

    _int(_section(data, "alerts"), "long_occupancy_hours", 72, 1)
    _int(_section(data, "dashboard"), "top_busy_assets", 6, 0)
    return errors


def parse_config(data: dict[str, Any], source: str = "<memory>") -> UsageAccountingConfig:
    """
    Parse and validate a raw configuration dict.

    Raises:
        InvalidConfigurationError: listing every validation error.
    """
    errors = validate_config_data(data)
    if errors:
        raise InvalidConfigurationError(source, errors)

    reporting = _section(data, "reporting")
    backfill = _section(data, "backfill")
    alerts = _section(data, "alerts")
    dashboard = _section(data, "dashboard")
    defaults = ReportingLabels()

    return UsageAccountingConfig(
        config_id=data["config_id"],
        version=data["version"],
        reporting=ReportingLabels(
            unlinked_label=reporting.get("unlinked_label", defaults.unlinked_label),
            uncategorized_label=reporting.get(
                "uncategorized_label", defaults.uncategorized_label
            ),
            user_placeholder=reporting.get("user_placeholder", defaults.user_placeholder),
        ),
        backfill=BackfillPolicy(
            default_limit=backfill.get("default_limit", 2000),
            max_limit=backfill.get("max_limit", 5000),
        ),
        alerts=AlertPolicy(
            long_occupancy_hours=alerts.get("long_occupancy_hours", 72),
        ),
        dashboard=DashboardPolicy(
            top_busy_assets=dashboard.get("top_busy_assets", 6),
        ),
        checksum=compute_checksum(data),
    )


def load_config_file(path: Path) -> UsageAccountingConfig:
    """Load, validate and parse one YAML configuration set."""
    return parse_config(load_yaml_file(path), source=str(path))
