"""Statement execution engine."""

from sqlchain.execution._aggregates import AggregateMixin
from sqlchain.execution._engine import QueryBuilder

__all__ = ("AggregateMixin", "QueryBuilder")
