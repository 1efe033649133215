"""Fluent SQL statement builder."""

from sqlchain.builder._base import StatementBuilder, render_count, render_statement
from sqlchain.builder._identifiers import IdentifierQuoter
from sqlchain.builder._operators import (
    COMPARISON_OPERATORS,
    JoinType,
    OrderDirection,
    SqlOperator,
    normalize_and_validate_operator,
)
from sqlchain.builder._state import StatementKind, StatementState

__all__ = (
    "COMPARISON_OPERATORS",
    "IdentifierQuoter",
    "JoinType",
    "OrderDirection",
    "SqlOperator",
    "StatementBuilder",
    "StatementKind",
    "StatementState",
    "normalize_and_validate_operator",
    "render_count",
    "render_statement",
)
