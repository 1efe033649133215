# ruff: noqa: SLF001
from typing import TYPE_CHECKING, Any, cast

from sqlchain.builder._state import StatementKind
from sqlchain.exceptions import SQLBuilderError

if TYPE_CHECKING:
    from sqlchain.execution._engine import QueryBuilder

__all__ = ("AggregateMixin",)


class AggregateMixin:
    """Single-value aggregates over the current SELECT.

    Each helper runs a copy of the statement with the projection replaced by
    ``<FUNCTION>(<column>) AS total``; ORDER BY and LIMIT are dropped from the
    copy. The builder keeps its own statement, so it can still be executed or
    aggregated again afterwards.
    """

    def sum(self, column: str) -> Any:
        """Sum of ``column`` over the matching rows.

        Args:
            column: Column to aggregate; quoted.

        Returns:
            The driver value, or ``None`` when no row matches.
        """
        return self._aggregate("SUM", column)

    def avg(self, column: str) -> Any:
        """Average of ``column`` over the matching rows.

        Args:
            column: Column to aggregate; quoted.

        Returns:
            The driver value, or ``None`` when no row matches.
        """
        return self._aggregate("AVG", column)

    def min(self, column: str) -> Any:
        """Smallest ``column`` value among the matching rows.

        Args:
            column: Column to aggregate; quoted.

        Returns:
            The driver value, or ``None`` when no row matches.
        """
        return self._aggregate("MIN", column)

    def max(self, column: str) -> Any:
        """Largest ``column`` value among the matching rows.

        Args:
            column: Column to aggregate; quoted.

        Returns:
            The driver value, or ``None`` when no row matches.
        """
        return self._aggregate("MAX", column)

    def count(self, column: str = "*") -> int:
        """Number of matching rows (``COUNT(*)``), or of non-null ``column`` values."""
        value = self._aggregate("COUNT", column)
        return int(value or 0)

    def exists(self) -> bool:
        """Whether at least one row matches the current SELECT.

        Returns:
            ``True`` when ``COUNT(*)`` is positive.
        """
        return self.count() > 0

    def _aggregate(self, function: str, column: str) -> Any:
        engine = cast("QueryBuilder", self)
        state = engine._state
        if state.kind is not StatementKind.SELECT or state.table is None:
            msg = f"{function}() requires a select() statement"
            raise SQLBuilderError(msg, fragment=column)

        transient = state.copy()
        transient.close_or_group()
        transient.operation_fragments[0] = (
            f"SELECT {function}({engine.quote(column)}) AS total FROM {engine.quote(state.table)}"
        )
        transient.order_by = []
        transient.limit = None

        result = engine._execute_state(transient, materialize=True)
        row = result.first()
        if row is None:
            return None
        return row.get("total", next(iter(row.values()), None))
