"""Query logging for executed statements."""

from sqlchain.observability._query_logger import (
    FileQueryLogger,
    LoggingQueryLogger,
    QueryEvent,
    QueryLoggerProtocol,
    format_query_event,
    loggable_parameters,
)

__all__ = (
    "FileQueryLogger",
    "LoggingQueryLogger",
    "QueryEvent",
    "QueryLoggerProtocol",
    "format_query_event",
    "loggable_parameters",
)
