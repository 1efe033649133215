"""SQLite connection on the standard library driver."""

import sqlite3
from typing import Any

from sqlchain.core.parameters import ParameterStyle
from sqlchain.dialects import Dialect
from sqlchain.driver.connection import DBAPIConnection

__all__ = ("SqliteConnection",)


class SqliteConnection(DBAPIConnection):
    """:mod:`sqlite3` connection in autocommit mode (``isolation_level=None``).

    Args:
        database: Database file path, or ``":memory:"``.
        **connect_kwargs: Extra keyword arguments for :func:`sqlite3.connect`.
    """

    __slots__ = ("database",)

    def __init__(self, database: str = ":memory:", **connect_kwargs: Any) -> None:
        self.database = database
        connect_kwargs.setdefault("check_same_thread", False)
        connect_kwargs["isolation_level"] = None

        def _connect() -> sqlite3.Connection:
            return sqlite3.connect(database, **connect_kwargs)

        super().__init__(_connect, Dialect.SQLITE, paramstyle=ParameterStyle.NAMED, database_errors=(sqlite3.Error,))

    def _configure(self, connection: Any) -> None:
        connection.execute("PRAGMA foreign_keys = ON")
