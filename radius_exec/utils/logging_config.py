"""Structured JSON logging for radius_exec.

Each record is written as one JSON object per line. Keyword arguments given
to a logger from :func:`get_structured_logger` become top-level fields, and
fields bound with :func:`logging_context` (request id, module instance,
pipeline stage) are attached to every record emitted inside the block.
Fields named in ``SENSITIVE_FIELDS`` are written as ``<redacted>``.
"""

from __future__ import annotations

import json
import logging
import os
import socket
from collections.abc import Iterable, Mapping, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

__all__ = [
    "configure_logging",
    "get_logger",
    "get_structured_logger",
    "bind_context",
    "clear_context",
    "logging_context",
    "StructuredJSONFormatter",
    "StructuredLoggerAdapter",
    "REDACTED",
    "SENSITIVE_FIELDS",
]

REDACTED = "<redacted>"

#: NT key material, hashes and shared secrets
SENSITIVE_FIELDS = frozenset(
    {"nt_key", "nt_hash_hash", "secret", "password", "auth_response"}
)

# Attributes every LogRecord carries; anything else on a record is a field.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "context",
    "taskName",
}
_ADAPTER_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})

_bound: ContextVar[dict[str, Any]] = ContextVar("radius_exec_log_fields", default={})
_configured = False


@lru_cache(maxsize=1)
def _hostname() -> str:
    try:
        return os.getenv("HOSTNAME") or socket.gethostname()
    except OSError:
        return "unknown"


def _to_json(value: Any) -> str:
    # Raw attribute values and keys are summarised, never dumped.
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    return repr(value)


def _merge(fields: dict[str, Any], source: Mapping[str, Any]) -> None:
    """Fill fields that are still missing or empty from ``source``."""
    for key, value in source.items():
        if key.startswith("_") or fields.get(key) not in (None, ""):
            continue
        fields[key] = REDACTED if key in SENSITIVE_FIELDS else value


class StructuredJSONFormatter(logging.Formatter):
    """Render a record as a ``log.v1`` JSON line."""

    def __init__(self, *, service: str = "radius_exec") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "schema": "log.v1",
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
            "host": _hostname(),
            "request_id": getattr(record, "request_id", None) or "",
        }
        _merge(fields, getattr(record, "context", None) or _bound.get())
        _merge(
            fields,
            {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS},
        )

        exc_type, exc, _tb = record.exc_info or (None, None, None)
        if exc_type is not None:
            fields["error"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stack": self.formatException(record.exc_info),
            }

        return json.dumps(fields, default=_to_json, ensure_ascii=True)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Adapter moving keyword arguments into record fields."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.setdefault("extra", {})
        for key in [k for k in kwargs if k not in _ADAPTER_KWARGS]:
            extra.setdefault(key, kwargs.pop(key))

        context = {**_bound.get(), **dict(self.extra or {})}
        if context:
            extra.setdefault("context", context)
        return msg, kwargs


def configure_logging(
    level: int = logging.INFO,
    *,
    stream: Any | None = None,
    handlers: Iterable[logging.Handler] | None = None,
    formatter: logging.Formatter | None = None,
) -> None:
    """Replace the root handlers with JSON-formatted ones at ``level``."""
    global _configured

    formatter = formatter or StructuredJSONFormatter()
    root = logging.getLogger()
    root.handlers = []
    for handler in handlers or (logging.StreamHandler(stream),):
        if handler.level == logging.NOTSET:
            handler.setLevel(level)
        if handler.formatter is None:
            handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    if not _configured:
        configure_logging()
    return logging.getLogger(name)


def get_structured_logger(name: str, **context: Any) -> StructuredLoggerAdapter:
    """Logger adapter carrying ``context`` as static fields."""
    static = {k: v for k, v in context.items() if v is not None}
    return StructuredLoggerAdapter(get_logger(name), static)


def bind_context(**fields: Any) -> Token:
    """Add fields to the current logging scope; returns a reset token."""
    merged = dict(_bound.get())
    merged.update((k, v) for k, v in fields.items() if v is not None)
    return _bound.set(merged)


def clear_context(token: Token | None = None) -> None:
    if token is None:
        _bound.set({})
    else:
        _bound.reset(token)


@contextmanager
def logging_context(**fields: Any):
    """Bind ``fields`` for the duration of the block."""
    token = bind_context(**fields)
    try:
        yield
    finally:
        clear_context(token)
