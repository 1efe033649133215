from typing import TYPE_CHECKING, Any, Union, cast

from typing_extensions import Self

from sqlchain.builder._operators import SqlOperator, normalize_and_validate_operator
from sqlchain.exceptions import SQLBuilderError

if TYPE_CHECKING:
    from sqlchain.builder.protocols import BuilderProtocol

__all__ = ("GroupByClauseMixin", "HavingClauseMixin")


class GroupByClauseMixin:
    """Mixin providing GROUP BY."""

    def group_by(self, column: str) -> Self:
        """Append ``column`` to the GROUP BY list.

        Args:
            column: Column to group by; quoted.

        Raises:
            SQLBuilderError: No statement has been started.

        Returns:
            The current builder instance for method chaining.
        """
        builder = cast("BuilderProtocol", self)
        if builder._state.is_empty:
            msg = "Cannot add GROUP BY clause: no statement has been started."
            raise SQLBuilderError(msg, fragment=column)
        builder._state.group_by.append(builder.quote(column))
        return self


class HavingClauseMixin:
    """Mixin providing HAVING predicates. A GROUP BY must already be present."""

    def having(self, column: str, operator: "Union[SqlOperator, str]", value: Any) -> Self:
        """Add ``column <operator> :having<N>``.

        Raises:
            SQLBuilderError: No ``group_by`` has been added, or the operator is invalid.
        """
        builder = cast("BuilderProtocol", self)
        self._require_group_by(column)
        operator = normalize_and_validate_operator(operator)
        state = builder._state
        name = builder.add_parameter(f"having{len(state.parameters)}", value)
        state.having.append(f"{builder.quote(column)} {operator.value} :{name}")
        return self

    def having_raw(self, condition: str) -> Self:
        """Add a literal HAVING predicate such as ``COUNT(*) > 1``."""
        builder = cast("BuilderProtocol", self)
        self._require_group_by(condition)
        builder._state.having.append(condition)
        return self

    def _require_group_by(self, fragment: str) -> None:
        builder = cast("BuilderProtocol", self)
        if not builder._state.group_by:
            msg = "HAVING requires a GROUP BY clause; call group_by() first"
            raise SQLBuilderError(msg, fragment=fragment)
