"""
Structured JSON logging for the HRIS kernel.

Every module operation runs inside ``ModuleService._transaction``, which
binds the acting user, the entity being worked on and the workflow it
belongs to.  Each line the operation emits (the transition, the audit
append, the notification fan-out, the commit or rollback) therefore
carries the same ``actor_id`` / ``entity_type`` / ``entity_id`` /
``workflow`` fields and can be grepped as one unit.

Personnel records are sensitive: signature images, salary figures and
secrets are never written to a log line, and e-mail addresses are masked.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
    "redact",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_FIELDS = ("correlation_id", "actor_id", "entity_type", "entity_id", "workflow")

_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"hris_log_{name}", default=None) for name in _FIELDS
}


class LogContext:
    """Request-scoped log fields, safe across threads and asyncio tasks.

    ``bind`` is the normal entry point; ``set`` exists for code that learns
    a value part-way through a bound block (e.g. the id of a row it just
    inserted) and relies on the enclosing ``bind`` to restore it.
    """

    FIELDS = _FIELDS

    @staticmethod
    def set(**values: Any) -> None:
        """Set known fields; ``None`` values and unknown names are ignored."""
        for name, val in values.items():
            var = _VARS.get(name)
            if var is not None and val is not None:
                var.set(str(val))

    @staticmethod
    def fill(**values: Any) -> None:
        """Like ``set`` but only for fields that are currently empty."""
        LogContext.set(**{k: v for k, v in values.items() if k in _VARS and _VARS[k].get() is None})

    @staticmethod
    def get_all() -> dict[str, str]:
        """Non-empty fields, in declaration order."""
        return {name: _VARS[name].get() for name in _FIELDS if _VARS[name].get() is not None}

    @staticmethod
    def clear() -> None:
        for var in _VARS.values():
            var.set(None)

    @staticmethod
    def bind(**values: Any) -> "_Binding":
        """Scope fields to a ``with`` block.

        Every known field named here is restored on exit, including fields
        bound to ``None``, so a ``set`` inside the block never leaks out.
        """
        return _Binding(values)


class _Binding:

    def __init__(self, values: dict[str, Any]):
        self._values = {k: v for k, v in values.items() if k in _VARS}
        self._tokens: list[tuple[ContextVar, Any]] = []

    def __enter__(self) -> type[LogContext]:
        for name, val in self._values.items():
            var = _VARS[name]
            self._tokens.append((var, var.set(None if val is None else str(val))))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------

REDACTED = "[redacted]"

# Substrings of field names whose values never reach a log line.
_SECRET_MARKERS = ("signature", "salary", "secret", "password", "token")


def _mask_email(value: str) -> str:
    local, sep, domain = value.partition("@")
    if not sep:
        return REDACTED
    return f"{local[:1]}***@{domain}"


def redact(key: str, value: Any) -> Any:
    """Value safe to log under ``key``."""
    if value is None:
        return None
    lowered = key.lower()
    if any(marker in lowered for marker in _SECRET_MARKERS):
        return REDACTED
    if "email" in lowered and isinstance(value, str):
        return _mask_email(value)
    return value


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _to_json(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, bound context, extras, error."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, val in vars(record).items():
            if key in _STDLIB_KEYS or key in payload:
                continue
            payload[key] = redact(key, val)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._error_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)

    @staticmethod
    def _error_fields(exc: BaseException) -> dict[str, Any]:
        """``HrisError`` subclasses contribute their code and public attributes."""
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        for name, val in vars(exc).items():
            if name.startswith("_") or name in ("args", "code"):
                continue
            fields[f"exc_{name}"] = redact(name, val)
        return fields


# ---------------------------------------------------------------------------
# Logger factory and setup
# ---------------------------------------------------------------------------

_ROOT = "hris_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """``hris_kernel.<name>``; module code passes e.g. ``"modules.pan"``."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to ``hris_kernel``. Later calls are no-ops."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    root.propagate = False
    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Drop handlers so tests can reconfigure."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_ROOT)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
