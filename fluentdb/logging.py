# SPDX-License-Identifier: MIT
"""Structured logging for fluentdb.

Records carry an ``extra_fields`` mapping and a correlation id so that the
statements and transactions of one logical unit of work can be grouped when
the output is rendered as JSON.
"""
from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional
from uuid import uuid4

_CORRELATION_ID_VAR: ContextVar[Optional[str]] = ContextVar(
    "fluentdb_correlation_id", default=None
)


def generate_correlation_id() -> str:
    return uuid4().hex


def get_correlation_id() -> Optional[str]:
    """Return the correlation id bound to the current context, if any."""

    return _CORRELATION_ID_VAR.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id for every record emitted inside the block."""

    resolved = correlation_id or generate_correlation_id()
    token = _CORRELATION_ID_VAR.set(resolved)
    try:
        yield resolved
    finally:
        _CORRELATION_ID_VAR.reset(token)


class JSONFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            payload["correlation_id"] = correlation_id
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            payload.update(extra_fields)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class StructuredLogger:
    """Thin wrapper turning keyword arguments into structured record fields."""

    def __init__(self, name: str) -> None:
        self.logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra: Dict[str, Any] = {"correlation_id": get_correlation_id()}
        if fields:
            extra["extra_fields"] = fields
        self.logger.log(level, msg, extra=extra)

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, **fields)


def configure_logging(level: str = "INFO", use_json: bool = True, stream: Any = None) -> None:
    """Attach a single stream handler to the ``fluentdb`` logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_json: Render records with :class:`JSONFormatter`
        stream: Output stream (defaults to sys.stderr)
    """
    package_logger = logging.getLogger("fluentdb")
    package_logger.setLevel(getattr(logging, level.upper()))
    package_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    package_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)


__all__ = [
    "JSONFormatter",
    "StructuredLogger",
    "configure_logging",
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger",
]
