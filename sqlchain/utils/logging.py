"""Logging helpers for sqlchain.

Loggers live under the ``sqlchain`` namespace. Records emitted while a
correlation ID is set carry it, so every query and cache event belonging to one
unit of work can be grouped after the fact.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Optional

from sqlchain._serialization import encode_json

__all__ = (
    "ROOT_LOGGER_NAME",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_scope",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "sqlchain"

_correlation_id: "ContextVar[Optional[str]]" = ContextVar("sqlchain_correlation_id", default=None)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Bind ``correlation_id`` to the current context; ``None`` clears it."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: str) -> "Iterator[str]":
    """Bind ``correlation_id`` for the duration of the block, restoring the previous value afterwards."""
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """Renders a record as one JSON object per line.

    Fields passed as ``extra={"extra_fields": {...}}`` are merged into the
    top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            entry["correlation_id"] = correlation_id
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            entry.update(extra_fields)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


class CorrelationIDFilter(logging.Filter):
    """Copies the active correlation ID onto each record as ``record.correlation_id``."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: PLR6301
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``sqlchain.<name>`` (or the package root logger when ``name`` is omitted)."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if not any(isinstance(existing, CorrelationIDFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: str = "INFO",
    format_style: str = "structured",
    log_to_file: Optional[str] = None,
    extra_handlers: "Optional[list[logging.Handler]]" = None,
) -> logging.Logger:
    """Install handlers on the ``sqlchain`` logger, replacing any configured before.

    Args:
        level: Level name, case-insensitive.
        format_style: ``"structured"`` for JSON lines, anything else for plain text.
        log_to_file: Also append JSON lines to this file.
        extra_handlers: Handlers attached as given.

    Raises:
        ValueError: ``level`` is not a logging level name.

    Returns:
        The configured package logger.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stdout)
    if format_style == "structured":
        console.setFormatter(StructuredFormatter())
    else:
        console.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root.addHandler(console)

    if log_to_file:
        file_handler = logging.FileHandler(log_to_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        root.addHandler(file_handler)

    for handler in extra_handlers or ():
        root.addHandler(handler)

    root.propagate = False
    root.debug("Logging configured", extra={"extra_fields": {"level": level, "format_style": format_style}})
    return root
