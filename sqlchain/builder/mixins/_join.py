from typing import TYPE_CHECKING, Union, cast

from typing_extensions import Self

from sqlchain.builder._operators import JoinType, SqlOperator, normalize_and_validate_operator
from sqlchain.builder._state import StatementKind
from sqlchain.exceptions import SQLBuilderError

if TYPE_CHECKING:
    from sqlchain.builder.protocols import BuilderProtocol

__all__ = ("JoinClauseMixin",)


class JoinClauseMixin:
    """Mixin providing JOIN clauses for SELECT builders."""

    def join(
        self,
        table: str,
        left_key: str,
        operator: "Union[SqlOperator, str]",
        right_key: str,
        join_type: "Union[JoinType, str]" = JoinType.INNER,
    ) -> Self:
        """Add ``<join type> <table> ON <left_key> <operator> <right_key>``.

        Args:
            table: Joined table, optionally ``"orders as o"``.
            left_key: Left-hand column of the join condition.
            operator: Comparison operator of the join condition.
            right_key: Right-hand column of the join condition.
            join_type: INNER, LEFT, RIGHT or FULL.

        Raises:
            SQLBuilderError: FULL JOIN on a dialect without it (MySQL, MariaDB), or an invalid operator.

        Returns:
            The current builder instance for method chaining.
        """
        builder = cast("BuilderProtocol", self)
        if builder._state.kind is not StatementKind.SELECT:
            msg = "JOIN can only be applied to a SELECT statement."
            raise SQLBuilderError(msg, fragment=table)
        if not isinstance(join_type, JoinType):
            token = " ".join(str(join_type).split()).upper()
            try:
                join_type = JoinType[token.removesuffix(" JOIN")]
            except KeyError:
                msg = f"Unsupported join type: {join_type}"
                raise SQLBuilderError(msg, fragment=str(join_type)) from None
        if join_type is JoinType.FULL and not builder.dialect.supports_full_join:
            msg = (
                f"FULL JOIN is not supported by {builder.dialect.value}. "
                "Combine a LEFT JOIN and a RIGHT JOIN query with UNION instead."
            )
            raise SQLBuilderError(msg, fragment=table)
        operator = normalize_and_validate_operator(operator)
        builder._state.joins.append(
            f"{join_type.value} {builder.quote(table)} ON "
            f"{builder.quote(left_key)} {operator.value} {builder.quote(right_key)}"
        )
        return self
