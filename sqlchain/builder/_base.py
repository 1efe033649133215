# ruff: noqa: SLF001
"""Fluent SQL statement builder.

Method calls accumulate rendered fragments and named parameters in a
:class:`StatementState`; :meth:`StatementBuilder.render` joins them into
dialect-correct SQL text.
"""

from collections.abc import Mapping
from typing import Any, Optional, Union

from sqlchain.builder._identifiers import IdentifierQuoter
from sqlchain.builder._state import StatementKind, StatementState
from sqlchain.builder.mixins import (
    GroupByClauseMixin,
    HavingClauseMixin,
    JoinClauseMixin,
    LimitClauseMixin,
    OrderByClauseMixin,
    StatementMixin,
    WhereClauseMixin,
)
from sqlchain.core.parameters import capture_parameter
from sqlchain.dialects import Dialect
from sqlchain.exceptions import SQLBuilderError

__all__ = ("StatementBuilder", "render_count", "render_statement")


def render_statement(state: StatementState, dialect: Dialect, *, include_limit: bool = True) -> str:
    """Render ``state`` without mutating it. A pending OR-group is closed in the output only."""
    parts = list(state.operation_fragments)
    parts.extend(state.joins)
    where = state.effective_where()
    if where:
        parts.append("WHERE " + " AND ".join(where))
    if state.group_by:
        parts.append("GROUP BY " + ", ".join(state.group_by))
    if state.having:
        parts.append("HAVING " + " AND ".join(state.having))
    if state.order_by:
        parts.append("ORDER BY " + ", ".join(state.order_by))
    if include_limit and state.limit is not None:
        count, offset = state.limit
        parts.append(dialect.render_limit(count, offset))
    return " ".join(parts)


def render_count(state: StatementState, dialect: Dialect, quoter: IdentifierQuoter) -> str:
    """Render the total-row query used for pagination.

    Grouped and raw statements are counted as a subquery over the statement
    without its LIMIT; anything else counts the table with the same joins and
    WHERE clause.
    """
    if state.group_by or state.table is None or state.kind is not StatementKind.SELECT:
        inner = render_statement(state, dialect, include_limit=False)
        return f"SELECT COUNT(*) AS total FROM ({inner}) count_subquery"
    parts = [f"SELECT COUNT(*) AS total FROM {quoter(state.table)}"]
    if state.table_alias:
        parts.append(f"AS {quoter(state.table_alias)}")
    parts.extend(state.joins)
    where = state.effective_where()
    if where:
        parts.append("WHERE " + " AND ".join(where))
    return " ".join(parts)


class StatementBuilder(
    StatementMixin,
    WhereClauseMixin,
    JoinClauseMixin,
    GroupByClauseMixin,
    HavingClauseMixin,
    OrderByClauseMixin,
    LimitClauseMixin,
):
    """Mutable single-owner builder for one statement at a time.

    ``select``/``insert``/``insert_batch``/``update``/``delete``/``raw`` start a
    new statement; the other methods refine it and return the builder.

    Example:
        >>> builder = StatementBuilder("sqlite")
        >>> builder.select("users", ["id", "name"]).where("status", "=", 1).render()
        'SELECT id, name FROM "users" WHERE "status" = :param0'
    """

    def __init__(self, dialect: "Union[Dialect, str]" = Dialect.SQLITE) -> None:
        self.dialect = Dialect.from_driver_name(dialect)
        self._quoter = IdentifierQuoter(self.dialect)
        self._state = StatementState()

    def quote(self, identifier: str) -> str:
        """Quote a table, column or ``name as alias`` expression for this dialect."""
        return self._quoter.quote(identifier)

    def add_parameter(self, name: str, value: Any) -> str:
        """Bind ``value`` under ``name`` and return the placeholder name actually used.

        A name already present in the statement gets a ``_<n>`` suffix. Binary streams
        are read into ``bytes`` here.

        Raises:
            ParameterBindingError: ``value`` is array-typed.
        """
        value = capture_parameter(value, name)
        parameters = self._state.parameters
        unique = name
        suffix = 1
        while unique in parameters:
            unique = f"{name}_{suffix}"
            suffix += 1
        parameters[unique] = value
        return unique

    def reset(self) -> None:
        """Discard the in-progress statement."""
        self._state = StatementState()

    def render(self) -> str:
        """Render the SQL text of the in-progress statement.

        Calling it repeatedly without other changes returns the same string.

        Raises:
            SQLBuilderError: No statement has been started.
        """
        if self._state.is_empty:
            msg = "No statement to render; call select(), insert(), update(), delete() or raw() first"
            raise SQLBuilderError(msg)
        return render_statement(self._state, self.dialect)

    def get_query_sql(self) -> str:
        """Rendered SQL of the in-progress statement, without executing it.

        Raises:
            SQLBuilderError: No statement has been started.

        Returns:
            The same text as :meth:`render`.
        """
        return self.render()

    @property
    def parameters(self) -> "Mapping[Union[str, int], Any]":
        """Copy of the parameters bound to the in-progress statement."""
        return dict(self._state.parameters)

    @property
    def statement_kind(self) -> Optional[StatementKind]:
        return self._state.kind

    def __repr__(self) -> str:
        if self._state.is_empty:
            return f"{type(self).__name__}(dialect={self.dialect.value!r})"
        return f"{type(self).__name__}(dialect={self.dialect.value!r}, sql={self.render()!r})"
