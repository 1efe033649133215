"""SQL dialect rules.

Every dialect-dependent decision (identifier quoting, LIMIT syntax, FULL JOIN
support, EXPLAIN prefix and savepoint statements) dispatches on :class:`Dialect`.
"""

from enum import Enum
from typing import Final, Optional

from sqlchain.exceptions import ImproperConfigurationError, SQLBuilderError

__all__ = ("DRIVER_ALIASES", "Dialect")


class Dialect(str, Enum):
    """Closed set of supported SQL dialects."""

    MYSQL = "mysql"
    MARIADB = "mariadb"
    POSTGRES = "postgres"
    SQLITE = "sqlite"
    MSSQL = "mssql"
    ORACLE = "oracle"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_driver_name(cls, name: "str | Dialect") -> "Dialect":
        """Resolve a driver name or alias (``pgsql``, ``sqlite3``, ``sqlsrv`` ...) to a dialect.

        Raises:
            ImproperConfigurationError: The name is not a known driver.
        """
        if isinstance(name, Dialect):
            return name
        dialect = DRIVER_ALIASES.get(name.strip().lower())
        if dialect is None:
            msg = f"Unsupported database driver: {name!r}"
            raise ImproperConfigurationError(msg)
        return dialect

    @property
    def sqlglot_dialect(self) -> str:
        """Name of the matching sqlglot dialect."""
        if self is Dialect.MSSQL:
            return "tsql"
        return self.value

    @property
    def supports_full_join(self) -> bool:
        return self not in {Dialect.MYSQL, Dialect.MARIADB}

    def quote(self, segment: str) -> str:
        """Quote a single identifier segment, doubling embedded closing quotes."""
        if self in {Dialect.MYSQL, Dialect.MARIADB}:
            return "`" + segment.replace("`", "``") + "`"
        if self is Dialect.MSSQL:
            return "[" + segment.replace("]", "]]") + "]"
        return '"' + segment.replace('"', '""') + '"'

    def render_limit(self, limit: int, offset: int) -> str:
        if self in {Dialect.MYSQL, Dialect.MARIADB}:
            return f"LIMIT {offset} , {limit}"
        if self in {Dialect.POSTGRES, Dialect.SQLITE}:
            return f"LIMIT {limit} OFFSET {offset}"
        return f"OFFSET {offset} ROWS FETCH NEXT {limit} ROWS ONLY"

    def explain(self, sql: str) -> str:
        """Wrap ``sql`` in this dialect's EXPLAIN form.

        Raises:
            SQLBuilderError: The dialect has no single-statement EXPLAIN.
        """
        if self in {Dialect.MYSQL, Dialect.MARIADB}:
            return f"EXPLAIN {sql}"
        if self is Dialect.POSTGRES:
            return f"EXPLAIN (FORMAT JSON, ANALYZE) {sql}"
        if self is Dialect.SQLITE:
            return f"EXPLAIN QUERY PLAN {sql}"
        if self is Dialect.ORACLE:
            return f"EXPLAIN PLAN FOR {sql}"
        msg = "EXPLAIN is not available as a single statement on SQL Server; use SET SHOWPLAN_ALL ON"
        raise SQLBuilderError(msg, fragment=sql)

    @property
    def begin_statement(self) -> Optional[str]:
        """Statement opening a transaction, ``None`` where transactions start implicitly."""
        if self is Dialect.ORACLE:
            return None
        if self is Dialect.MSSQL:
            return "BEGIN TRANSACTION"
        return "BEGIN"

    def savepoint_statement(self, name: str) -> str:
        if self is Dialect.MSSQL:
            return f"SAVE TRANSACTION {name}"
        return f"SAVEPOINT {name}"

    def release_savepoint_statement(self, name: str) -> Optional[str]:
        """Statement releasing a savepoint, ``None`` where savepoints cannot be released."""
        if self in {Dialect.MSSQL, Dialect.ORACLE}:
            return None
        return f"RELEASE SAVEPOINT {name}"

    def rollback_to_savepoint_statement(self, name: str) -> str:
        if self is Dialect.MSSQL:
            return f"ROLLBACK TRANSACTION {name}"
        return f"ROLLBACK TO SAVEPOINT {name}"


DRIVER_ALIASES: Final[dict[str, Dialect]] = {
    "mysql": Dialect.MYSQL,
    "pymysql": Dialect.MYSQL,
    "mariadb": Dialect.MARIADB,
    "postgres": Dialect.POSTGRES,
    "postgresql": Dialect.POSTGRES,
    "pgsql": Dialect.POSTGRES,
    "psycopg": Dialect.POSTGRES,
    "sqlite": Dialect.SQLITE,
    "sqlite3": Dialect.SQLITE,
    "mssql": Dialect.MSSQL,
    "sqlsrv": Dialect.MSSQL,
    "sqlserver": Dialect.MSSQL,
    "tsql": Dialect.MSSQL,
    "oracle": Dialect.ORACLE,
    "oci": Dialect.ORACLE,
    "oracledb": Dialect.ORACLE,
}
