# ruff: noqa: SLF001
"""Statement execution.

:class:`QueryBuilder` adds execution to the fluent :class:`StatementBuilder`:
cache lookup, parameter binding, execution, pagination, streaming or
materialized rows, cache write, aggregates and transactions.
"""

import time
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar, Union

from typing_extensions import Self

from sqlchain.builder import StatementBuilder, StatementKind, StatementState, render_count, render_statement
from sqlchain.cache._backend import CacheBackendProtocol
from sqlchain.core.cache import DEFAULT_CACHE_TTL, QueryCache
from sqlchain.core.pagination import PageInfo, Paginator, PaginatorProtocol
from sqlchain.core.parameters import bind_parameters, parameters_for
from sqlchain.core.result import DEFAULT_FETCH_SIZE, QueryResult, RowStream, row_to_dict
from sqlchain.core.statement import parse_statement, returns_rows
from sqlchain.exceptions import QueryError, SQLBuilderError, SQLChainError
from sqlchain.execution._aggregates import AggregateMixin
from sqlchain.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlchain.driver._protocols import ConnectionProtocol
    from sqlchain.observability._query_logger import QueryLoggerProtocol

__all__ = ("QueryBuilder",)

logger = get_logger("execution")

T = TypeVar("T")


class QueryBuilder(AggregateMixin, StatementBuilder):
    """Fluent builder bound to a connection.

    Args:
        connection: Connection collaborator, e.g. :class:`~sqlchain.driver.SqliteConnection`.
        paginator: Computes page metadata for limited statements.
        cache: A :class:`QueryCache` or a bare cache backend; ``None`` disables caching.
        query_logger: Receives timings of successful statements and details of failed ones.
        fetch_size: Rows fetched per round trip while streaming.
        default_cache_ttl: TTL used by :meth:`cache` when none is given.

    Example:
        >>> qb = QueryBuilder(SqliteConnection(), cache=MemoryCache())
        >>> qb.select("orders").where("status", "=", 1).cache(60).execute().all()
    """

    def __init__(
        self,
        connection: "ConnectionProtocol",
        *,
        paginator: "Optional[PaginatorProtocol]" = None,
        cache: "Union[QueryCache, CacheBackendProtocol, None]" = None,
        query_logger: "Optional[QueryLoggerProtocol]" = None,
        fetch_size: int = DEFAULT_FETCH_SIZE,
        default_cache_ttl: int = DEFAULT_CACHE_TTL,
    ) -> None:
        super().__init__(connection.dialect)
        self.connection = connection
        self.paginator: PaginatorProtocol = paginator or Paginator()
        self.query_cache: Optional[QueryCache] = (
            cache if cache is None or isinstance(cache, QueryCache) else QueryCache(cache)
        )
        self.query_logger = query_logger
        self.fetch_size = fetch_size
        self.default_cache_ttl = default_cache_ttl
        self._insert_id: Any = None

    @property
    def insert_id(self) -> Any:
        """Identifier generated by the most recent INSERT, when the driver reports one."""
        return self._insert_id

    def cache(self, ttl: Optional[int] = None) -> Self:
        """Serve the current statement from the cache, storing it for ``ttl`` seconds on a miss.

        ``ttl`` defaults to the builder's ``default_cache_ttl``.

        Only row-returning statements are cached. A new ``select()`` clears the setting.
        """
        state = self._state
        if state.is_empty:
            msg = "cache() requires a started statement"
            raise SQLBuilderError(msg)
        if ttl is None:
            ttl = self.default_cache_ttl
        if ttl <= 0:
            msg = f"Cache TTL must be positive, got {ttl}"
            raise SQLBuilderError(msg, fragment=str(ttl))
        if self.query_cache is None:
            logger.debug("cache() called on a builder without a cache backend; statement will not be cached")
        state.cache_ttl = ttl
        return self

    def execute(self) -> QueryResult:
        """Execute the current statement.

        Rows are streamed straight from the cursor unless the statement is cached,
        in which case they are materialized. A statement with a LIMIT gets page
        metadata, computed with a count query run before the statement itself.
        The builder is reset once execution succeeds.

        Raises:
            SQLBuilderError: No statement has been started.
            ParameterBindingError: A parameter cannot be bound.
            QueryError: The backend rejected the statement.
        """
        state = self._require_statement()
        result = self._execute_state(state, materialize=False)
        self.reset()
        return result

    def explain(self) -> "list[dict[str, Any]]":
        """Run the dialect's EXPLAIN for the current statement and return its rows.

        The builder keeps its statement.

        Raises:
            SQLBuilderError: No statement, or the dialect has no single-statement EXPLAIN.
        """
        state = self._require_statement()
        sql = self.dialect.explain(render_statement(state, self.dialect))
        return self._fetch_all(sql, dict(state.parameters))

    def transactional(self, fn: "Callable[[Self, Any], T]") -> T:
        """Call ``fn(builder, handle)`` inside a transaction.

        Nested calls use savepoints. Whatever ``fn`` raises propagates after rollback.
        """
        return self.connection.run_in_transaction(lambda handle: fn(self, handle))

    def forget_cached(self) -> bool:
        """Drop the cache entry of the current statement."""
        state = self._require_statement()
        if self.query_cache is None:
            return False
        sql = render_statement(state, self.dialect)
        key = self.query_cache.make_key(sql, state.parameters, self.dialect.sqlglot_dialect)
        return key is not None and self.query_cache.invalidate(key)

    def flush_cache(self) -> bool:
        """Drop every cached result of this builder's cache."""
        return self.query_cache is not None and self.query_cache.invalidate_all()

    def _require_statement(self) -> StatementState:
        if self._state.is_empty:
            msg = "No statement to execute; call select(), insert(), update(), delete() or raw() first"
            raise SQLBuilderError(msg)
        return self._state

    def _is_cacheable(self, state: StatementState, sql: str) -> bool:
        if state.kind is StatementKind.SELECT:
            return True
        if state.kind is StatementKind.RAW:
            return returns_rows(parse_statement(sql, self.dialect.sqlglot_dialect))
        return False

    def _execute_state(self, state: StatementState, *, materialize: bool) -> QueryResult:
        sql = render_statement(state, self.dialect)
        parameters = dict(state.parameters)

        cache_key: Optional[str] = None
        if state.cache_ttl is not None and self.query_cache is not None:
            if self._is_cacheable(state, sql):
                cache_key = self.query_cache.make_key(sql, parameters, self.dialect.sqlglot_dialect)
            else:
                logger.debug("Skipping cache for statement that returns no rows: %s", sql)

        if cache_key is not None:
            payload = self.query_cache.load(cache_key)  # type: ignore[union-attr]
            if payload is not None:
                return QueryResult(
                    payload.rows,
                    payload.count or 0,
                    payload.pagination.to_page_info() if payload.pagination is not None else None,
                    from_cache=True,
                )

        pagination = self._paginate(state, parameters) if state.limit is not None else None
        result = self._run(
            sql,
            parameters,
            materialize=materialize or cache_key is not None,
            capture_insert_id=state.kind in {StatementKind.INSERT, StatementKind.RAW},
        )
        result.pagination = pagination

        if cache_key is not None and isinstance(result.rows, list) and state.cache_ttl is not None:
            self.query_cache.store(  # type: ignore[union-attr]
                cache_key, result.rows, result.row_count, pagination, state.cache_ttl
            )
        return result

    def _paginate(self, state: StatementState, parameters: "Mapping[Union[str, int], Any]") -> PageInfo:
        count_sql = render_count(state, self.dialect, self._quoter)
        rows = self._fetch_all(count_sql, parameters_for(count_sql, parameters))
        total = 0
        if rows:
            value = rows[0].get("total", next(iter(rows[0].values()), 0))
            total = int(value or 0)
        limit, offset = state.limit  # type: ignore[misc]
        return self.paginator.paginate(total, limit, offset // limit + 1)

    def _fetch_all(self, sql: str, parameters: "Mapping[Union[str, int], Any]") -> "list[dict[str, Any]]":
        return self._run(sql, parameters, materialize=True).all()

    def _run(
        self,
        sql: str,
        parameters: "Mapping[Union[str, int], Any]",
        *,
        materialize: bool,
        capture_insert_id: bool = False,
    ) -> QueryResult:
        bound = bind_parameters(parameters)
        cursor = self.connection.open_cursor(buffered=materialize)
        started = time.perf_counter()
        try:
            self.connection.execute(cursor, sql, bound)
            if cursor.description is None:
                insert_id = self.connection.last_insert_id(cursor) if capture_insert_id else None
                if insert_id is not None:
                    self._insert_id = insert_id
                result = QueryResult([], max(cursor.rowcount or 0, 0), last_insert_id=insert_id)
                cursor.close()
            elif materialize:
                columns = [column[0] for column in cursor.description]
                rows = [row_to_dict(row, columns) for row in cursor.fetchall()]
                cursor.close()
                result = QueryResult(rows, len(rows))
            else:
                result = QueryResult(RowStream(cursor, fetch_size=self.fetch_size), max(cursor.rowcount or 0, 0))
        except SQLChainError:
            self._close_quietly(cursor)
            raise
        except self.connection.database_errors as exc:
            self._close_quietly(cursor)
            if self.query_logger is not None:
                self.query_logger.log_error(sql, parameters, exc)
            msg = f"{self.dialect.value} error executing statement: {exc}"
            raise QueryError(msg, sql=sql, parameters=parameters) from exc
        except BaseException:
            self._close_quietly(cursor)
            raise

        if self.query_logger is not None:
            self.query_logger.log_query(sql, parameters, time.perf_counter() - started, result.row_count)
        return result

    @staticmethod
    def _close_quietly(cursor: Any) -> None:
        try:
            cursor.close()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Ignoring error while closing cursor: %s", exc)
