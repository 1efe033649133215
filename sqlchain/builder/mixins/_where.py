from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Union, cast

from typing_extensions import Self

from sqlchain.builder._operators import SqlOperator, normalize_and_validate_operator
from sqlchain.builder._state import StatementKind
from sqlchain.core.parameters import placeholder_name
from sqlchain.exceptions import SQLBuilderError

if TYPE_CHECKING:
    from sqlchain.builder.protocols import BuilderProtocol

__all__ = ("WhereClauseMixin",)


def _where_target(builder: "BuilderProtocol", column: str) -> None:
    state = builder._state
    if state.is_empty:
        msg = "Cannot add WHERE clause: no statement has been started."
        raise SQLBuilderError(msg, fragment=column)
    if state.kind is StatementKind.INSERT:
        msg = "Cannot add WHERE clause to an INSERT statement."
        raise SQLBuilderError(msg, fragment=column)


class WhereClauseMixin:
    """Mixin providing WHERE predicates for SELECT, UPDATE, DELETE and raw statements.

    Predicates are AND-combined. ``or_where`` folds the preceding predicate and
    every following ``or_where`` into one parenthesized OR-group, closed by the
    next where-family call or by rendering.
    """

    def where(self, column: str, operator: "Union[SqlOperator, str]", value: Any) -> Self:
        """Add ``column <operator> :param<N>``.

        Raises:
            SQLBuilderError: Unknown operator, or one with a dedicated method (IN, BETWEEN, IS).

        Returns:
            The current builder instance for method chaining.
        """
        builder = cast("BuilderProtocol", self)
        _where_target(builder, column)
        operator = normalize_and_validate_operator(operator)
        state = builder._state
        name = builder.add_parameter(f"param{len(state.parameters)}", value)
        state.close_or_group()
        state.where_conditions.append(f"{builder.quote(column)} {operator.value} :{name}")
        return self

    def or_where(self, column: str, operator: "Union[SqlOperator, str]", value: Any) -> Self:
        """OR this predicate with the previous one.

        ``where(a).or_where(b).where(c)`` renders ``(a OR b) AND c``.
        """
        builder = cast("BuilderProtocol", self)
        _where_target(builder, column)
        operator = normalize_and_validate_operator(operator)
        state = builder._state
        name = builder.add_parameter(f"param{len(state.parameters)}", value)
        if not state.or_group and state.where_conditions:
            state.or_group.append(state.where_conditions.pop())
        state.or_group.append(f"{builder.quote(column)} {operator.value} :{name}")
        return self

    def where_in(self, column: str, values: "Sequence[Any]") -> Self:
        return self._where_in(column, values, negate=False)

    def where_not_in(self, column: str, values: "Sequence[Any]") -> Self:
        return self._where_in(column, values, negate=True)

    def _where_in(self, column: str, values: "Sequence[Any]", *, negate: bool) -> Self:
        builder = cast("BuilderProtocol", self)
        _where_target(builder, column)
        keyword = "NOT IN" if negate else "IN"
        if isinstance(values, (str, bytes)) or not values:
            msg = f"{keyword} requires a non-empty list of values"
            raise SQLBuilderError(msg, fragment=column)
        suffix = "notin" if negate else "in"
        base = placeholder_name(column)
        names = [builder.add_parameter(f"{base}_{suffix}_{index}", value) for index, value in enumerate(values)]
        state = builder._state
        state.close_or_group()
        state.where_conditions.append(
            f"{builder.quote(column)} {keyword} (" + ", ".join(f":{name}" for name in names) + ")"
        )
        return self

    def where_between(self, column: str, values: "Sequence[Any]") -> Self:
        return self._where_between(column, values, negate=False)

    def where_not_between(self, column: str, values: "Sequence[Any]") -> Self:
        return self._where_between(column, values, negate=True)

    def _where_between(self, column: str, values: "Sequence[Any]", *, negate: bool) -> Self:
        builder = cast("BuilderProtocol", self)
        _where_target(builder, column)
        keyword = "NOT BETWEEN" if negate else "BETWEEN"
        if isinstance(values, (str, bytes)) or len(values) != 2:  # noqa: PLR2004
            msg = f"{keyword} requires exactly two values"
            raise SQLBuilderError(msg, fragment=column)
        prefix = "nbt" if negate else "bt"
        base = placeholder_name(column)
        low = builder.add_parameter(f"{base}_{prefix}1", values[0])
        high = builder.add_parameter(f"{base}_{prefix}2", values[1])
        state = builder._state
        state.close_or_group()
        state.where_conditions.append(f"{builder.quote(column)} {keyword} :{low} AND :{high}")
        return self

    def where_null(self, column: str) -> Self:
        return self._where_null(column, negate=False)

    def where_not_null(self, column: str) -> Self:
        return self._where_null(column, negate=True)

    def _where_null(self, column: str, *, negate: bool) -> Self:
        builder = cast("BuilderProtocol", self)
        _where_target(builder, column)
        state = builder._state
        state.close_or_group()
        state.where_conditions.append(f"{builder.quote(column)} IS {'NOT NULL' if negate else 'NULL'}")
        return self
