"""Fluent statement builder mixins."""

from sqlchain.builder.mixins._group_having import GroupByClauseMixin, HavingClauseMixin
from sqlchain.builder.mixins._join import JoinClauseMixin
from sqlchain.builder.mixins._order_limit import LimitClauseMixin, OrderByClauseMixin
from sqlchain.builder.mixins._statements import StatementMixin
from sqlchain.builder.mixins._where import WhereClauseMixin

__all__ = (
    "GroupByClauseMixin",
    "HavingClauseMixin",
    "JoinClauseMixin",
    "LimitClauseMixin",
    "OrderByClauseMixin",
    "StatementMixin",
    "WhereClauseMixin",
)
