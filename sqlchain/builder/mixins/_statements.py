from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Union, cast

from typing_extensions import Self

from sqlchain.builder._state import StatementKind
from sqlchain.core.parameters import capture_parameter, placeholder_name
from sqlchain.exceptions import SQLBuilderError

if TYPE_CHECKING:
    from sqlchain.builder.protocols import BuilderProtocol

__all__ = ("StatementMixin",)


class StatementMixin:
    """Mixin opening a new statement: SELECT, INSERT, UPDATE, DELETE or raw SQL.

    Each of these discards whatever the builder held before.
    """

    def select(self, table: str, fields: "Sequence[str]" = ("*",)) -> Self:
        """Start a SELECT.

        Args:
            table: Table to select from; quoted.
            fields: Projection expressions, emitted as given.

        Returns:
            The current builder instance for method chaining.
        """
        builder = cast("BuilderProtocol", self)
        if isinstance(fields, str):
            fields = (fields,)
        if not fields:
            msg = "select() requires at least one field"
            raise SQLBuilderError(msg, fragment=table)
        builder.reset()
        state = builder._state
        state.kind = StatementKind.SELECT
        state.table = table
        state.operation_fragments.append(f"SELECT {', '.join(fields)} FROM {builder.quote(table)}")
        return self

    def insert(self, table: str, row: "Mapping[str, Any]") -> Self:
        """Start an INSERT of a single row, one ``:column`` placeholder per column."""
        builder = cast("BuilderProtocol", self)
        if not row:
            msg = "insert() requires at least one column"
            raise SQLBuilderError(msg, fragment=table)
        builder.reset()
        state = builder._state
        state.kind = StatementKind.INSERT
        state.table = table
        columns = ", ".join(builder.quote(column) for column in row)
        placeholders = ", ".join(
            f":{builder.add_parameter(placeholder_name(column), value)}" for column, value in row.items()
        )
        state.operation_fragments.append(f"INSERT INTO {builder.quote(table)} ({columns}) VALUES ({placeholders})")
        return self

    def insert_batch(self, table: str, rows: "Sequence[Mapping[str, Any]]") -> Self:
        """Start a multi-row INSERT.

        Every row must carry the same column set as the first one. Placeholders
        are suffixed with the row index (``:name_0``, ``:name_1`` ...).

        Raises:
            SQLBuilderError: ``rows`` is empty or a row's columns differ from the first row's.
        """
        builder = cast("BuilderProtocol", self)
        if not rows:
            msg = "insert_batch() requires at least one row"
            raise SQLBuilderError(msg, fragment=table)
        columns = list(rows[0])
        if not columns:
            msg = "insert_batch() requires at least one column"
            raise SQLBuilderError(msg, fragment=table)
        expected = set(columns)
        for index, row in enumerate(rows):
            if set(row) != expected:
                msg = f"Row {index} columns {sorted(row)} do not match the first row's columns {sorted(columns)}"
                raise SQLBuilderError(msg, fragment=f"row {index}")

        builder.reset()
        state = builder._state
        state.kind = StatementKind.INSERT
        state.table = table
        groups = []
        for index, row in enumerate(rows):
            names = (
                builder.add_parameter(f"{placeholder_name(column)}_{index}", row[column]) for column in columns
            )
            groups.append("(" + ", ".join(f":{name}" for name in names) + ")")
        quoted_columns = ", ".join(builder.quote(column) for column in columns)
        state.operation_fragments.append(
            f"INSERT INTO {builder.quote(table)} ({quoted_columns}) VALUES {', '.join(groups)}"
        )
        return self

    def update(self, table: str, row: "Mapping[str, Any]") -> Self:
        """Start an UPDATE setting each column of ``row`` through a ``:column`` placeholder."""
        builder = cast("BuilderProtocol", self)
        if not row:
            msg = "update() requires at least one column"
            raise SQLBuilderError(msg, fragment=table)
        builder.reset()
        state = builder._state
        state.kind = StatementKind.UPDATE
        state.table = table
        assignments = ", ".join(
            f"{builder.quote(column)} = :{builder.add_parameter(placeholder_name(column), value)}"
            for column, value in row.items()
        )
        state.operation_fragments.append(f"UPDATE {builder.quote(table)} SET {assignments}")
        return self

    def delete(self, table: str) -> Self:
        """Start a DELETE; without a WHERE clause every row of ``table`` is removed.

        Args:
            table: Table to delete from; quoted.

        Returns:
            The current builder instance for method chaining.
        """
        builder = cast("BuilderProtocol", self)
        builder.reset()
        state = builder._state
        state.kind = StatementKind.DELETE
        state.table = table
        state.operation_fragments.append(f"DELETE FROM {builder.quote(table)}")
        return self

    def raw(self, sql: str, parameters: "Optional[Union[Mapping[str, Any], Sequence[Any]]]" = None) -> Self:
        """Start a statement from literal SQL.

        Args:
            sql: SQL text using ``:name`` or ``?`` placeholders.
            parameters: A mapping for named placeholders or a sequence for ``?`` placeholders.

        Returns:
            The current builder instance for method chaining.
        """
        builder = cast("BuilderProtocol", self)
        if not sql or not sql.strip():
            msg = "raw() requires SQL text"
            raise SQLBuilderError(msg)
        builder.reset()
        state = builder._state
        state.kind = StatementKind.RAW
        state.operation_fragments.append(sql.strip())
        if parameters is None:
            return self
        if isinstance(parameters, Mapping):
            for key, value in parameters.items():
                name = str(key).lstrip(":")
                state.parameters[name] = capture_parameter(value, name)
        elif isinstance(parameters, (str, bytes)):
            msg = "raw() parameters must be a mapping or a sequence, not a string"
            raise SQLBuilderError(msg, fragment=sql)
        else:
            for position, value in enumerate(parameters):
                state.parameters[position] = capture_parameter(value, position)
        return self

    def alias(self, name: str) -> Self:
        """Append ``AS <name>`` to the statement; meaningful right after ``select``."""
        builder = cast("BuilderProtocol", self)
        state = builder._state
        if state.is_empty:
            msg = "alias() requires a started statement"
            raise SQLBuilderError(msg, fragment=name)
        state.operation_fragments.append(f"AS {builder.quote(name)}")
        state.table_alias = name
        return self
