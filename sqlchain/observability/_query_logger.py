"""Query logger collaborators for the execution engine."""

import datetime
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from time import time
from typing import Any, Optional, Protocol, Union

from sqlchain.exceptions import ImproperConfigurationError
from sqlchain.utils.logging import StructuredFormatter, get_correlation_id, get_logger

__all__ = (
    "FileQueryLogger",
    "LoggingQueryLogger",
    "QueryEvent",
    "QueryLoggerProtocol",
    "format_query_event",
    "loggable_parameters",
)

_PLAIN_TYPES = (str, int, float, bool, type(None), Decimal, datetime.date, datetime.datetime)


class QueryLoggerProtocol(Protocol):
    def log_query(
        self, sql: str, parameters: "Mapping[Union[str, int], Any]", duration: float, row_count: int
    ) -> None: ...

    def log_error(self, sql: str, parameters: "Mapping[Union[str, int], Any]", error: BaseException) -> None: ...


@dataclass
class QueryEvent:
    """Structured payload describing one statement execution."""

    sql: str
    parameters: "dict[str, Any]"
    duration_s: Optional[float]
    row_count: Optional[int]
    error: Optional[str]
    correlation_id: Optional[str]
    logged_at: float

    def as_dict(self) -> "dict[str, Any]":
        return {
            "sql": self.sql,
            "parameters": self.parameters,
            "duration_s": self.duration_s,
            "row_count": self.row_count,
            "error": self.error,
            "correlation_id": self.correlation_id,
            "logged_at": self.logged_at,
        }


def loggable_parameters(parameters: "Mapping[Union[str, int], Any]") -> "dict[str, Any]":
    """Parameters with JSON-safe values; binary values are summarized by size."""
    safe: dict[str, Any] = {}
    for key, value in parameters.items():
        if isinstance(value, (bytes, bytearray, memoryview)):
            safe[str(key)] = f"<{len(value)} bytes>"
        elif isinstance(value, _PLAIN_TYPES):
            safe[str(key)] = value
        else:
            safe[str(key)] = f"<{type(value).__name__}>"
    return safe


def _event(
    sql: str,
    parameters: "Mapping[Union[str, int], Any]",
    *,
    duration: Optional[float] = None,
    row_count: Optional[int] = None,
    error: Optional[BaseException] = None,
) -> QueryEvent:
    return QueryEvent(
        sql=sql,
        parameters=loggable_parameters(parameters),
        duration_s=duration,
        row_count=row_count,
        error=f"{type(error).__name__}: {error}" if error is not None else None,
        correlation_id=get_correlation_id(),
        logged_at=time(),
    )


def format_query_event(event: QueryEvent) -> str:
    """Concise human-readable form of an event."""
    if event.error is not None:
        return f"Query failed: {event.error}\nSQL: {event.sql}\nParameters: {event.parameters}"
    duration_label = f"{event.duration_s:.6f}s" if event.duration_s is not None else "unknown"
    return f"Query executed (rows={event.row_count}, duration={duration_label})\nSQL: {event.sql}"


class LoggingQueryLogger:
    """Emits query events through the ``sqlchain.query`` logger."""

    __slots__ = ("_logger", "level")

    def __init__(self, logger: "Optional[logging.Logger]" = None, level: int = logging.DEBUG) -> None:
        self._logger = logger or get_logger("query")
        self.level = level

    def log_query(
        self, sql: str, parameters: "Mapping[Union[str, int], Any]", duration: float, row_count: int
    ) -> None:
        if not self._logger.isEnabledFor(self.level):
            return
        event = _event(sql, parameters, duration=duration, row_count=row_count)
        self._logger.log(self.level, format_query_event(event), extra={"extra_fields": event.as_dict()})

    def log_error(self, sql: str, parameters: "Mapping[Union[str, int], Any]", error: BaseException) -> None:
        event = _event(sql, parameters, error=error)
        self._logger.error(format_query_event(event), extra={"extra_fields": event.as_dict()})


class FileQueryLogger(LoggingQueryLogger):
    """Appends query events as JSON lines to ``path``.

    Args:
        path: Log file; its directory is created when missing.
        enabled: When false every call is a no-op and no file is opened.

    Raises:
        ImproperConfigurationError: The log directory cannot be created or written.
    """

    __slots__ = ("enabled", "handler", "path")

    def __init__(self, path: "Union[str, Path]", enabled: bool = True) -> None:
        self.path = Path(path)
        self.enabled = enabled
        self.handler: Optional[logging.FileHandler] = None
        logger = logging.getLogger(f"sqlchain.query.file.{self.path.resolve()}")
        logger.propagate = False
        logger.setLevel(logging.INFO)
        super().__init__(logger, logging.INFO)
        if not enabled:
            return

        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create query log directory {directory}: {exc}"
            raise ImproperConfigurationError(msg) from exc
        if not os.access(directory, os.W_OK):
            msg = f"Query log directory {directory} is not writable"
            raise ImproperConfigurationError(msg)

        for existing in list(logger.handlers):
            logger.removeHandler(existing)
            existing.close()
        self.handler = logging.FileHandler(self.path, encoding="utf-8")
        self.handler.setFormatter(StructuredFormatter())
        logger.addHandler(self.handler)

    def log_query(
        self, sql: str, parameters: "Mapping[Union[str, int], Any]", duration: float, row_count: int
    ) -> None:
        if self.enabled:
            super().log_query(sql, parameters, duration, row_count)

    def log_error(self, sql: str, parameters: "Mapping[Union[str, int], Any]", error: BaseException) -> None:
        if self.enabled:
            super().log_error(sql, parameters, error)

    def close(self) -> None:
        if self.handler is not None:
            self._logger.removeHandler(self.handler)
            self.handler.close()
            self.handler = None
