"""Page metadata for limited queries."""

import math
from typing import Protocol

from mypy_extensions import mypyc_attr

__all__ = ("PageInfo", "Paginator", "PaginatorProtocol", "paginate")


@mypyc_attr(allow_interpreted_subclasses=True)
class PageInfo:
    """Position of one page within a result set."""

    __slots__ = ("current_page", "per_page", "total_items", "total_pages")

    current_page: int
    per_page: int
    total_pages: int
    total_items: int

    def __init__(self, current_page: int, per_page: int, total_pages: int, total_items: int) -> None:
        self.current_page = current_page
        self.per_page = per_page
        self.total_pages = total_pages
        self.total_items = total_items

    def to_dict(self) -> "dict[str, int]":
        return {
            "current_page": self.current_page,
            "per_page": self.per_page,
            "total_pages": self.total_pages,
            "total_items": self.total_items,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageInfo):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((self.current_page, self.per_page, self.total_pages, self.total_items))

    def __repr__(self) -> str:
        return (
            f"PageInfo(current_page={self.current_page}, per_page={self.per_page}, "
            f"total_pages={self.total_pages}, total_items={self.total_items})"
        )


def paginate(total: int, per_page: int, current_page: int) -> PageInfo:
    """Compute page metadata. ``per_page`` is floored to 1; negative inputs are clamped to 0.

    Example:
        >>> paginate(23, 10, 1).total_pages
        3
    """
    total = max(0, int(total))
    per_page = max(1, int(per_page))
    current_page = max(0, int(current_page))
    return PageInfo(
        current_page=current_page,
        per_page=per_page,
        total_pages=math.ceil(total / per_page),
        total_items=total,
    )


class PaginatorProtocol(Protocol):
    def paginate(self, total: int, per_page: int, current_page: int) -> PageInfo: ...


class Paginator:
    """Default paginator collaborator of the execution engine."""

    __slots__ = ()

    def paginate(self, total: int, per_page: int, current_page: int) -> PageInfo:
        return paginate(total, per_page, current_page)
