# ruff: noqa: BLE001
"""Generic DB-API 2 connection wrapper."""

from typing import Any, Callable, Optional, TypeVar, Union

from mypy_extensions import mypyc_attr

from sqlchain.core.parameters import BoundParameter, ParameterStyle, convert_placeholders
from sqlchain.dialects import Dialect
from sqlchain.exceptions import DatabaseConnectionError, TransactionError
from sqlchain.utils.logging import get_logger

__all__ = ("DBAPIConnection",)

logger = get_logger("driver.connection")

T = TypeVar("T")


@mypyc_attr(allow_interpreted_subclasses=True)
class DBAPIConnection:
    """Lazily opened DB-API connection driven in autocommit mode.

    Transactions are opened explicitly by :meth:`run_in_transaction`; a nested
    call becomes a savepoint named after the nesting depth. A dropped
    connection is reopened on the next :meth:`acquire_handle`.

    Args:
        connect: Zero-argument callable returning a new DB-API connection.
        dialect: SQL dialect of the backend.
        paramstyle: Placeholder style the driver accepts.
        database_errors: Driver exception types treated as backend failures.
        unbuffered_cursor: Callable producing a streaming (server-side) cursor from a native connection.
    """

    __slots__ = (
        "_connect",
        "_connection",
        "_depth",
        "_dialect",
        "_unbuffered_cursor",
        "database_errors",
        "paramstyle",
    )

    def __init__(
        self,
        connect: "Callable[[], Any]",
        dialect: "Union[Dialect, str]",
        *,
        paramstyle: "Union[ParameterStyle, str]" = ParameterStyle.NAMED,
        database_errors: "tuple[type[BaseException], ...]" = (Exception,),
        unbuffered_cursor: "Optional[Callable[[Any], Any]]" = None,
    ) -> None:
        self._connect = connect
        self._dialect = Dialect.from_driver_name(dialect)
        self.paramstyle = ParameterStyle(paramstyle)
        self.database_errors = database_errors
        self._unbuffered_cursor = unbuffered_cursor
        self._connection: Any = None
        self._depth = 0

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def driver_name(self) -> str:
        return self._dialect.value

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def transaction_depth(self) -> int:
        return self._depth

    def connect(self) -> None:
        """Open the connection if it is not open yet.

        Raises:
            DatabaseConnectionError: The driver could not connect.
        """
        if self._connection is not None:
            return
        try:
            self._connection = self._connect()
        except self.database_errors as exc:
            msg = f"Could not connect to {self.driver_name} database: {exc}"
            raise DatabaseConnectionError(msg) from exc
        self._configure(self._connection)
        logger.debug("Opened %s connection", self.driver_name)

    def _configure(self, connection: Any) -> None:
        """Hook run on every freshly opened native connection."""
        if hasattr(connection, "autocommit"):
            connection.autocommit = True

    def disconnect(self) -> None:
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        self._depth = 0
        try:
            connection.close()
        except self.database_errors as exc:
            logger.warning("Error while closing %s connection: %s", self.driver_name, exc)

    def acquire_handle(self, buffered: bool = True) -> Any:
        """The native connection, opened on demand."""
        self.connect()
        return self._connection

    def open_cursor(self, buffered: bool = True) -> Any:
        """A new cursor; streaming (server-side) when ``buffered`` is false and the driver offers one."""
        handle = self.acquire_handle(buffered)
        if not buffered and self._unbuffered_cursor is not None:
            return self._unbuffered_cursor(handle)
        return handle.cursor()

    def execute(self, cursor: Any, sql: str, parameters: "list[BoundParameter]") -> None:
        """Run ``sql`` on ``cursor`` after rewriting its placeholders to the driver's style."""
        converted, driver_parameters = convert_placeholders(sql, parameters, self.paramstyle)
        cursor.execute(converted, driver_parameters)

    def last_insert_id(self, cursor: Any) -> Any:
        return getattr(cursor, "lastrowid", None)

    def _run_control(self, sql: str) -> None:
        cursor = self.acquire_handle().cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    def _begin(self) -> None:
        begin = self._dialect.begin_statement
        if begin is None:
            handle = self.acquire_handle()
            if hasattr(handle, "autocommit"):
                handle.autocommit = False
            return
        self._run_control(begin)

    def _finish(self, *, commit: bool) -> None:
        handle = self.acquire_handle()
        if self._dialect.begin_statement is None:
            if commit:
                handle.commit()
            else:
                handle.rollback()
            if hasattr(handle, "autocommit"):
                handle.autocommit = True
            return
        self._run_control("COMMIT" if commit else "ROLLBACK")

    def run_in_transaction(self, fn: "Callable[[Any], T]") -> T:
        """Run ``fn(handle)`` in a transaction, or in a savepoint when one is already open.

        Commits (or releases the savepoint) when ``fn`` returns; rolls back and
        re-raises whatever ``fn`` raised otherwise.

        Raises:
            TransactionError: Opening or committing the transaction failed.
        """
        handle = self.acquire_handle()
        savepoint = f"sp_{self._depth}" if self._depth > 0 else None
        try:
            if savepoint is None:
                self._begin()
            else:
                self._run_control(self._dialect.savepoint_statement(savepoint))
        except self.database_errors as exc:
            msg = f"Could not start transaction: {exc}"
            raise TransactionError(msg) from exc

        self._depth += 1
        try:
            result = fn(handle)
        except BaseException:
            self._depth -= 1
            self._rollback(savepoint)
            raise

        self._depth -= 1
        try:
            if savepoint is None:
                self._finish(commit=True)
            else:
                release = self._dialect.release_savepoint_statement(savepoint)
                if release is not None:
                    self._run_control(release)
        except self.database_errors as exc:
            self._rollback(savepoint)
            msg = f"Could not commit transaction: {exc}"
            raise TransactionError(msg) from exc
        return result

    def _rollback(self, savepoint: Optional[str]) -> None:
        try:
            if savepoint is None:
                self._finish(commit=False)
            else:
                self._run_control(self._dialect.rollback_to_savepoint_statement(savepoint))
        except Exception as exc:
            logger.error("Rollback failed on %s connection: %s", self.driver_name, exc)

    def __repr__(self) -> str:
        state = "open" if self.is_connected else "closed"
        return f"{type(self).__name__}(driver={self.driver_name!r}, {state})"
