"""
usage_config -- single public entrypoint for usage accounting configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive the returned
    ``UsageAccountingConfig`` and never read YAML themselves.

Architecture position:
    Configuration -- sits above ``usage_kernel`` and below
    ``usage_services``.  The kernel and engines MUST NEVER import from
    ``usage_config``; services translate config values into explicit
    engine parameters.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Validation: a set that fails validation never becomes active.
    - Deterministic checksum: the same YAML always produces the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``InvalidConfigurationError`` -- validation failures.

Audit relevance:
    Every load emits a ``USAGE_CONFIG_TRACE`` log entry containing the
    config_id, version and checksum.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from usage_config.loader import load_config_file
from usage_config.schema import (
    AlertPolicy,
    BackfillPolicy,
    DashboardPolicy,
    ReportingLabels,
    UsageAccountingConfig,
)

_logger = logging.getLogger("usage_kernel.config")

# Default configuration set
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

_cache: dict[Path, UsageAccountingConfig] = {}
_cache_lock = threading.Lock()


def get_active_config(config_path: Path | str | None = None) -> UsageAccountingConfig:
    """The ONLY public configuration entrypoint.

    Loads are cached per resolved path; call ``reload_config()`` to force
    a re-read.

    Args:
        config_path: Override path to a configuration set.  Defaults to
            usage_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        InvalidConfigurationError: If validation fails.
    """
    path = Path(config_path or DEFAULT_CONFIG_PATH).resolve()
    with _cache_lock:
        cached = _cache.get(path)
    if cached is not None:
        return cached

    config = load_config_file(path)
    with _cache_lock:
        _cache[path] = config

    _logger.info(
        "USAGE_CONFIG_TRACE",
        extra={
            "trace_type": "USAGE_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "source": str(path),
        },
    )
    return config


def reload_config() -> None:
    """Clear cached configuration sets."""
    with _cache_lock:
        _cache.clear()


__all__ = [
    "AlertPolicy",
    "BackfillPolicy",
    "DashboardPolicy",
    "DEFAULT_CONFIG_PATH",
    "ReportingLabels",
    "UsageAccountingConfig",
    "get_active_config",
    "reload_config",
]
