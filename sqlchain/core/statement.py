"""SQL text inspection with sqlglot."""

import contextlib
from typing import Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from sqlchain.utils.logging import get_logger

__all__ = ("detect_operation_type", "normalize_sql", "parse_statement", "returns_rows")

logger = get_logger("core.statement")

_OPERATION_TYPES: "dict[type[exp.Expression], str]" = {
    exp.Select: "SELECT",
    exp.Union: "SELECT",
    exp.Insert: "INSERT",
    exp.Update: "UPDATE",
    exp.Delete: "DELETE",
    exp.Merge: "MERGE",
    exp.Create: "DDL",
    exp.Drop: "DDL",
    exp.Alter: "DDL",
    exp.Values: "VALUES",
    exp.Command: "COMMAND",
    exp.Pragma: "PRAGMA",
    exp.Describe: "DESCRIBE",
}


def parse_statement(sql: str, dialect: Optional[str] = None) -> "Optional[exp.Expression]":
    """Parse a single statement, returning ``None`` when sqlglot cannot parse it."""
    try:
        return sqlglot.parse_one(sql, read=dialect)
    except SqlglotError:
        logger.debug("Could not parse statement for inspection: %s", sql)
        return None


def detect_operation_type(expression: "Optional[exp.Expression]") -> str:
    if expression is None:
        return "UNKNOWN"
    if isinstance(expression, exp.With) and expression.expressions:
        return detect_operation_type(expression.expressions[-1])
    for expression_type, operation in _OPERATION_TYPES.items():
        if isinstance(expression, expression_type):
            return operation
    return "UNKNOWN"


def returns_rows(expression: "Optional[exp.Expression]") -> bool:
    """Whether the statement produces a result set.

    SELECT, set operations, VALUES, SHOW/DESCRIBE/PRAGMA and unparsed commands
    such as EXPLAIN return rows; writes only with a RETURNING clause.
    """
    if expression is None:
        return False
    if isinstance(
        expression, (exp.Select, exp.Union, exp.Values, exp.Table, exp.Show, exp.Describe, exp.Pragma, exp.Command)
    ):
        return True
    if isinstance(expression, exp.With) and expression.expressions:
        return returns_rows(expression.expressions[-1])
    if isinstance(expression, (exp.Insert, exp.Update, exp.Delete)):
        return bool(expression.find(exp.Returning))
    return False


def normalize_sql(sql: str, dialect: Optional[str] = None) -> str:
    """Canonical text of ``sql``: regenerated by sqlglot, or whitespace-collapsed if it does not parse."""
    expression = parse_statement(sql, dialect)
    if expression is not None:
        with contextlib.suppress(SqlglotError):
            return expression.sql(dialect=dialect)
    return " ".join(sql.split())
