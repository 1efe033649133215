from typing import Any

import pytest

from sqlchain.core.parameters import ParameterStyle, bind_parameters
from sqlchain.dialects import Dialect
from sqlchain.driver import ConnectionProtocol, DBAPIConnection
from sqlchain.exceptions import DatabaseConnectionError, TransactionError


class NativeWithAutocommit:
    """Connection object exposing ``autocommit``, ``commit`` and ``rollback`` like oracledb does."""

    def __init__(self) -> None:
        self.autocommit = False
        self.commits = 0
        self.rollbacks = 0
        self.autocommit_history: list[bool] = []

    def commit(self) -> None:
        self.autocommit_history.append(self.autocommit)
        self.commits += 1

    def rollback(self) -> None:
        self.autocommit_history.append(self.autocommit)
        self.rollbacks += 1

    def cursor(self) -> Any:
        raise AssertionError("no statements expected")

    def close(self) -> None:
        pass


def test_connection_is_lazy(fake_native: Any, fake_connection: DBAPIConnection) -> None:
    assert isinstance(fake_connection, ConnectionProtocol)
    assert not fake_connection.is_connected
    assert "closed" in repr(fake_connection)

    assert fake_connection.acquire_handle() is fake_native
    assert fake_connection.is_connected
    assert fake_connection.driver_name == "mysql"

    fake_connection.disconnect()
    assert fake_native.closed
    assert not fake_connection.is_connected
    fake_connection.disconnect()


def test_connect_failure_is_wrapped(fake_native: Any) -> None:
    def _fail() -> Any:
        raise fake_native.Error("refused")

    connection = DBAPIConnection(_fail, "pgsql", database_errors=(fake_native.Error,))

    with pytest.raises(DatabaseConnectionError, match="refused") as exc_info:
        connection.connect()
    assert isinstance(exc_info.value.__cause__, fake_native.Error)


def test_autocommit_is_enabled_on_connect() -> None:
    native = NativeWithAutocommit()
    DBAPIConnection(lambda: native, Dialect.ORACLE).connect()

    assert native.autocommit is True


def test_execute_converts_placeholders(fake_native: Any) -> None:
    connection = DBAPIConnection(lambda: fake_native, "postgres", paramstyle="pyformat")
    cursor = connection.open_cursor()

    connection.execute(cursor, "SELECT * FROM t WHERE a = :a AND b LIKE 'x%'", bind_parameters({"a": True}))

    assert fake_native.executed == [("SELECT * FROM t WHERE a = %(a)s AND b LIKE 'x%%'", {"a": 1})]
    assert connection.paramstyle is ParameterStyle.PYFORMAT


def test_unbuffered_cursor_factory(fake_native: Any) -> None:
    streaming = object()
    connection = DBAPIConnection(lambda: fake_native, "mysql", unbuffered_cursor=lambda handle: streaming)

    assert connection.open_cursor(buffered=False) is streaming
    assert connection.open_cursor(buffered=True) is not streaming


def test_transaction_commits(fake_native: Any, fake_connection: DBAPIConnection) -> None:
    result = fake_connection.run_in_transaction(lambda handle: handle is fake_native)

    assert result is True
    assert fake_native.statements == ["BEGIN", "COMMIT"]
    assert fake_connection.transaction_depth == 0


def test_transaction_rolls_back_and_reraises(fake_native: Any, fake_connection: DBAPIConnection) -> None:
    def _fail(handle: Any) -> None:
        raise ValueError("nope")

    with pytest.raises(ValueError, match="nope"):
        fake_connection.run_in_transaction(_fail)

    assert fake_native.statements == ["BEGIN", "ROLLBACK"]
    assert fake_connection.transaction_depth == 0


def test_nested_transactions_use_savepoints(fake_native: Any, fake_connection: DBAPIConnection) -> None:
    def _inner_fails(handle: Any) -> None:
        raise ValueError("inner")

    def _outer(handle: Any) -> str:
        fake_connection.run_in_transaction(lambda h: None)
        with pytest.raises(ValueError, match="inner"):
            fake_connection.run_in_transaction(_inner_fails)
        return "done"

    assert fake_connection.run_in_transaction(_outer) == "done"
    assert fake_native.statements == [
        "BEGIN",
        "SAVEPOINT sp_1",
        "RELEASE SAVEPOINT sp_1",
        "SAVEPOINT sp_1",
        "ROLLBACK TO SAVEPOINT sp_1",
        "COMMIT",
    ]


def test_sql_server_savepoints_are_not_released(fake_native: Any) -> None:
    connection = DBAPIConnection(lambda: fake_native, Dialect.MSSQL)

    connection.run_in_transaction(lambda handle: connection.run_in_transaction(lambda h: None))

    assert fake_native.statements == ["BEGIN TRANSACTION", "SAVE TRANSACTION sp_1", "COMMIT"]


def test_begin_failure_raises_transaction_error(fake_native: Any, fake_connection: DBAPIConnection) -> None:
    fake_native.error = fake_native.Error("locked")
    called: list[bool] = []

    with pytest.raises(TransactionError, match="Could not start transaction"):
        fake_connection.run_in_transaction(lambda handle: called.append(True))

    assert called == []
    assert fake_connection.transaction_depth == 0


def test_commit_failure_rolls_back(fake_native: Any, fake_connection: DBAPIConnection) -> None:
    def _arm_commit_failure(handle: Any) -> None:
        fake_native.error = fake_native.Error("disk full")

    with pytest.raises(TransactionError, match="Could not commit transaction"):
        fake_connection.run_in_transaction(_arm_commit_failure)

    assert fake_native.statements == ["BEGIN", "COMMIT", "ROLLBACK"]


def test_rollback_failure_is_logged_and_original_error_propagates(
    fake_native: Any, fake_connection: DBAPIConnection, caplog: pytest.LogCaptureFixture
) -> None:
    def _fail(handle: Any) -> None:
        fake_native.error = fake_native.Error("gone")
        raise KeyError("original")

    with pytest.raises(KeyError, match="original"):
        fake_connection.run_in_transaction(_fail)

    assert "Rollback failed" in caplog.text


def test_implicit_transactions_toggle_autocommit() -> None:
    native = NativeWithAutocommit()
    connection = DBAPIConnection(lambda: native, Dialect.ORACLE)

    def _fail(handle: Any) -> None:
        raise RuntimeError("x")

    connection.run_in_transaction(lambda handle: None)
    with pytest.raises(RuntimeError):
        connection.run_in_transaction(_fail)

    assert native.commits == 1
    assert native.rollbacks == 1
    assert native.autocommit_history == [False, False]
    assert native.autocommit is True
