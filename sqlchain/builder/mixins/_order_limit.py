from typing import TYPE_CHECKING, Union, cast

from typing_extensions import Self

from sqlchain.builder._operators import OrderDirection
from sqlchain.exceptions import SQLBuilderError

if TYPE_CHECKING:
    from sqlchain.builder.protocols import BuilderProtocol

__all__ = ("LimitClauseMixin", "OrderByClauseMixin")


class OrderByClauseMixin:
    def order_by(self, column: str, direction: "Union[OrderDirection, str]" = OrderDirection.ASC) -> Self:
        """Add an ORDER BY term.

        Raises:
            SQLBuilderError: ``direction`` is neither ASC nor DESC.
        """
        builder = cast("BuilderProtocol", self)
        if builder._state.is_empty:
            msg = "Cannot add ORDER BY clause: no statement has been started."
            raise SQLBuilderError(msg, fragment=column)
        if not isinstance(direction, OrderDirection):
            try:
                direction = OrderDirection(str(direction).strip().upper())
            except ValueError:
                msg = f"Invalid sort direction: {direction}"
                raise SQLBuilderError(msg, fragment=str(direction)) from None
        builder._state.order_by.append(f"{builder.quote(column)} {direction.value}")
        return self


class LimitClauseMixin:
    def limit(self, count: int, offset: int = 0) -> Self:
        """Limit the result to ``count`` rows after skipping ``offset``.

        Rendered per dialect. Setting a limit also turns on pagination metadata in
        the execution result.

        Raises:
            SQLBuilderError: ``count`` is not positive or ``offset`` is negative.
        """
        builder = cast("BuilderProtocol", self)
        if builder._state.is_empty:
            msg = "Cannot add LIMIT clause: no statement has been started."
            raise SQLBuilderError(msg)
        if count < 1 or offset < 0:
            msg = f"Invalid limit {count} / offset {offset}"
            raise SQLBuilderError(msg, fragment=f"{count}, {offset}")
        builder._state.limit = (int(count), int(offset))
        return self
