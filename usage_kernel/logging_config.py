"""
Structured JSON logging for the usage kernel.

Every logger lives under the ``usage_kernel`` namespace and writes one JSON
object per line:

    {"ts": ..., "level": "INFO", "logger": "usage_kernel.engines.aggregation",
     "message": "cost_lines_computed", "report_id": "...", "line_count": 12}

Messages are short event names.  Structured data goes in ``extra={...}``
and is merged into the top-level object, next to any fields bound in
``LogContext`` for the current report or record.

Usage:
    from usage_kernel.logging_config import LogContext, get_logger

    logger = get_logger("services.cost_report")
    with LogContext.bind(report_id=report_id):
        logger.info("cost_report_started", extra={"group_by": "project"})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

_NAMESPACE = "usage_kernel"

# ---------------------------------------------------------------------------
# Context fields
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = ("correlation_id", "report_id", "actor_id", "record_id")

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"usage_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """
    Per-task log fields (correlation, report, actor, record ids).

    Backed by ContextVars, so values do not leak between threads or
    asyncio tasks.
    """

    @staticmethod
    def set(**fields: str | None) -> None:
        """Set the given fields; None values are ignored."""
        for name, value in fields.items():
            if value is not None:
                _context_vars[name].set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        """Fields that currently have a value."""
        values = {name: var.get() for name, var in _context_vars.items()}
        return {name: value for name, value in values.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _context_vars.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a block, then restore them."""
        tokens: list[tuple[ContextVar[str | None], Token]] = []
        for name, value in fields.items():
            if value is not None and name in _context_vars:
                var = _context_vars[name]
                tokens.append((var, var.set(value)))
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: core fields, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))

        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # Structured attributes of UsageKernelError subclasses (group_by, bound, ...)
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``usage_kernel.<name>``."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the usage_kernel logger.  Runs once per process."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_NAMESPACE)
    root.setLevel(level)
    root.propagate = False

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Remove handlers and allow configure_logging() to run again.  Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_NAMESPACE)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
