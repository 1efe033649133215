"""Connection construction from :class:`~sqlchain.config.DatabaseSettings`."""

from typing import TYPE_CHECKING, Any, Callable, Optional

from sqlchain.core.parameters import ParameterStyle
from sqlchain.dialects import Dialect
from sqlchain.driver.connection import DBAPIConnection
from sqlchain.driver.sqlite import SqliteConnection
from sqlchain.exceptions import ImproperConfigurationError
from sqlchain.utils.module_loader import import_driver_module

if TYPE_CHECKING:
    from sqlchain.config import DatabaseSettings

__all__ = ("create_connection",)


def _error_types(module: Any) -> "tuple[type[BaseException], ...]":
    error = getattr(module, "Error", None)
    return (error,) if isinstance(error, type) else (Exception,)


def create_connection(
    settings: "DatabaseSettings", connect: "Optional[Callable[[], Any]]" = None
) -> DBAPIConnection:
    """Build a lazily connecting :class:`DBAPIConnection` for ``settings``.

    Drivers are imported on first use: ``psycopg`` for PostgreSQL, ``pymysql``
    for MySQL and MariaDB, ``oracledb`` for Oracle. SQL Server has no bundled
    driver and needs ``connect``.

    Raises:
        MissingDependencyError: The driver package is not installed.
        ImproperConfigurationError: SQL Server was requested without ``connect``.
    """
    dialect = settings.dialect
    kwargs = settings.to_connect_kwargs()

    if dialect is Dialect.SQLITE and connect is None:
        database = kwargs.pop("database")
        return SqliteConnection(database, **kwargs)

    if connect is not None:
        return DBAPIConnection(connect, dialect)

    if dialect is Dialect.POSTGRES:
        psycopg = import_driver_module("psycopg")
        return DBAPIConnection(
            lambda: psycopg.connect(autocommit=True, **kwargs),
            dialect,
            paramstyle=ParameterStyle.PYFORMAT,
            database_errors=_error_types(psycopg),
        )

    if dialect in {Dialect.MYSQL, Dialect.MARIADB}:
        pymysql = import_driver_module("pymysql")
        cursors = import_driver_module("pymysql.cursors", "pymysql")
        return DBAPIConnection(
            lambda: pymysql.connect(autocommit=True, **kwargs),
            dialect,
            paramstyle=ParameterStyle.PYFORMAT,
            database_errors=_error_types(pymysql),
            unbuffered_cursor=lambda handle: handle.cursor(cursors.SSCursor),
        )

    if dialect is Dialect.ORACLE:
        oracledb = import_driver_module("oracledb")
        return DBAPIConnection(
            lambda: oracledb.connect(**kwargs),
            dialect,
            paramstyle=ParameterStyle.NAMED,
            database_errors=_error_types(oracledb),
        )

    msg = f"No bundled driver for {dialect.value}; pass a connect callable returning a DB-API connection"
    raise ImproperConfigurationError(msg)
