from typing import Any

import pytest

from sqlchain.config import DatabaseSettings
from sqlchain.dialects import Dialect
from sqlchain.driver import DBAPIConnection, SqliteConnection, create_connection
from sqlchain.exceptions import ImproperConfigurationError


def test_sqlite_settings_build_sqlite_connection() -> None:
    connection = create_connection(DatabaseSettings(driver="sqlite3"))

    assert isinstance(connection, SqliteConnection)
    assert connection.database == ":memory:"
    assert not connection.is_connected


def test_connect_callable_builds_generic_connection(fake_native: Any) -> None:
    settings = DatabaseSettings(driver="sqlsrv", host="db", database="app")

    connection = create_connection(settings, connect=lambda: fake_native)

    assert type(connection) is DBAPIConnection
    assert connection.dialect is Dialect.MSSQL
    assert connection.acquire_handle() is fake_native


def test_sql_server_without_connect_is_rejected() -> None:
    settings = DatabaseSettings(driver="mssql", host="db", database="app")

    with pytest.raises(ImproperConfigurationError, match="connect callable"):
        create_connection(settings)


def test_sqlite_connection_enables_foreign_keys(sqlite_connection: SqliteConnection) -> None:
    cursor = sqlite_connection.acquire_handle().execute("PRAGMA foreign_keys")

    assert cursor.fetchone() == (1,)
