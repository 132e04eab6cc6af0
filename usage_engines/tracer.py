"""
usage_engines.tracer -- ``@traced_engine`` decorator for pure engine calls.

Responsibility:
    Emit one USAGE_ENGINE_TRACE log record per engine call carrying the
    engine name and version, the call duration, and a short fingerprint of
    the arguments that determine the result (group_by, window, now, ...).
    Two reports with equal fingerprints were computed from equal inputs.

Architecture position:
    Engines -- support code.  Reads arguments and logs; no other I/O.

Invariants enforced:
    - Equal inputs give equal fingerprints regardless of whether they were
      passed positionally or by keyword, and regardless of dict ordering.
    - Fingerprints are the first 16 hex chars of a SHA-256 digest.

Failure modes:
    - A fingerprint field the call did not supply hashes as "null".
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from usage_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_EVENT = "USAGE_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    """Stable text form of an argument value."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        return value
    if is_dataclass(value) and not isinstance(value, type):
        value = {f.name: getattr(value, f.name) for f in fields(value) if f.init}
    if isinstance(value, Mapping):
        body = ",".join(
            f"{key}:{_canonicalize(value[key])}" for key in sorted(value, key=str)
        )
        return "{" + body + "}"
    if isinstance(value, (list, tuple, frozenset, set)):
        items = value if isinstance(value, (list, tuple)) else sorted(value, key=str)
        return "[" + ",".join(_canonicalize(item) for item in items) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """16-hex-char SHA-256 prefix over ``name=value`` pairs, in field order."""
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Wrap an engine function so each call logs a trace record.

    Args:
        engine_name: e.g. "aggregation".
        engine_version: e.g. "1.0".
        fingerprint_fields: Parameter names hashed into input_fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                arguments = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed = time.perf_counter() - started

            logger.info(
                TRACE_EVENT,
                extra={
                    "trace_type": TRACE_EVENT,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round(elapsed * 1000, 2),
                },
            )
            return result

        return wrapper

    return decorator
