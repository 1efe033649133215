from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from sqlchain.cache import MemoryCache
from sqlchain.core.parameters import ParameterStyle
from sqlchain.dialects import Dialect
from sqlchain.driver import DBAPIConnection, SqliteConnection
from sqlchain.execution import QueryBuilder

here = Path(__file__).parent
root_path = here.parent

_ROW_STATEMENTS = ("SELECT", "EXPLAIN", "WITH")


class FakeDatabaseError(Exception):
    """Stand-in for a driver's DB-API ``Error``."""


class FakeCursor:
    def __init__(self, connection: FakeNativeConnection) -> None:
        self.connection = connection
        self.description: Any = None
        self.rowcount = -1
        self.lastrowid: Any = None
        self.closed = False
        self._rows: list[tuple[Any, ...]] = []

    def execute(self, sql: str, parameters: Any = None) -> None:
        self.connection.executed.append((sql, parameters))
        if self.connection.error is not None:
            error, self.connection.error = self.connection.error, None
            raise error
        if sql.lstrip().upper().startswith(_ROW_STATEMENTS):
            columns, rows = self.connection.results.pop(0) if self.connection.results else (["value"], [])
            self.description = [(column, None, None, None, None, None, None) for column in columns]
            self._rows = list(rows)
            self.rowcount = -1
        else:
            self.description = None
            self.rowcount = 1
            self.lastrowid = self.connection.next_insert_id

    def fetchall(self) -> list[tuple[Any, ...]]:
        rows, self._rows = self._rows, []
        return rows

    def fetchmany(self, size: int = 1) -> list[tuple[Any, ...]]:
        batch, self._rows = self._rows[:size], self._rows[size:]
        return batch

    def close(self) -> None:
        self.closed = True
        self.connection.closed_cursors += 1


class FakeNativeConnection:
    """Records every statement; row-returning statements answer from ``results`` in order."""

    Error = FakeDatabaseError

    def __init__(self) -> None:
        self.executed: list[tuple[str, Any]] = []
        self.results: list[tuple[list[str], list[tuple[Any, ...]]]] = []
        self.error: Exception | None = None
        self.next_insert_id: Any = 7
        self.closed = False
        self.closed_cursors = 0
        self.cursors: list[FakeCursor] = []

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self)
        self.cursors.append(cursor)
        return cursor

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]


@pytest.fixture
def fake_native() -> FakeNativeConnection:
    return FakeNativeConnection()


@pytest.fixture
def fake_connection(fake_native: FakeNativeConnection) -> DBAPIConnection:
    return DBAPIConnection(
        lambda: fake_native, Dialect.MYSQL, paramstyle=ParameterStyle.NAMED, database_errors=(FakeDatabaseError,)
    )


@pytest.fixture
def fake_builder(fake_connection: DBAPIConnection) -> QueryBuilder:
    return QueryBuilder(fake_connection, cache=MemoryCache())


@pytest.fixture
def sqlite_connection() -> Any:
    connection = SqliteConnection()
    yield connection
    connection.disconnect()


@pytest.fixture
def sqlite_builder(sqlite_connection: SqliteConnection) -> QueryBuilder:
    return QueryBuilder(sqlite_connection, cache=MemoryCache())
