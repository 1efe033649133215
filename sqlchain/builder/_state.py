"""In-progress statement state."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

__all__ = ("StatementKind", "StatementState")


class StatementKind(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RAW = "RAW"

    def __str__(self) -> str:
        return self.value


@dataclass
class StatementState:
    """Everything accumulated for one statement between ``select``/``insert``/... and execution.

    Every list holds already-rendered SQL text, so rendering is a join over the
    lists in a fixed order. ``or_group`` holds the predicates of an OR-run that
    has not been closed into ``where_conditions`` yet.
    """

    kind: Optional[StatementKind] = None
    operation_fragments: list[str] = field(default_factory=list)
    table: Optional[str] = None
    table_alias: Optional[str] = None
    where_conditions: list[str] = field(default_factory=list)
    or_group: list[str] = field(default_factory=list)
    joins: list[str] = field(default_factory=list)
    group_by: list[str] = field(default_factory=list)
    having: list[str] = field(default_factory=list)
    order_by: list[str] = field(default_factory=list)
    limit: Optional[tuple[int, int]] = None
    parameters: dict[Union[str, int], Any] = field(default_factory=dict)
    cache_ttl: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.kind is None

    def close_or_group(self) -> None:
        """Move a pending OR-run into ``where_conditions`` as a parenthesized predicate."""
        if self.or_group:
            self.where_conditions.append(render_or_group(self.or_group))
            self.or_group = []

    def effective_where(self) -> list[str]:
        """WHERE predicates as they would render, with a pending OR-run closed."""
        if not self.or_group:
            return list(self.where_conditions)
        return [*self.where_conditions, render_or_group(self.or_group)]

    def copy(self) -> "StatementState":
        """Independent copy; list and mapping members are not shared."""
        return replace(
            self,
            operation_fragments=list(self.operation_fragments),
            where_conditions=list(self.where_conditions),
            or_group=list(self.or_group),
            joins=list(self.joins),
            group_by=list(self.group_by),
            having=list(self.having),
            order_by=list(self.order_by),
            parameters=dict(self.parameters),
        )


def render_or_group(predicates: "list[str]") -> str:
    return "(" + " OR ".join(predicates) + ")"
