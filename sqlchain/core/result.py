"""Execution results.

A :class:`QueryResult` carries either a materialized list of rows or a
:class:`RowStream`, a single-pass iterator reading straight from the driver
cursor. A stream owns its cursor and closes it when exhausted, when
:meth:`RowStream.close` is called, or when a ``with`` block exits.
"""

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from mypy_extensions import mypyc_attr

if TYPE_CHECKING:
    from types import TracebackType

    from typing_extensions import Self

    from sqlchain.core.pagination import PageInfo

__all__ = ("QueryResult", "Row", "RowStream", "row_to_dict")

Row = dict[str, Any]

DEFAULT_FETCH_SIZE = 100


def row_to_dict(row: Any, columns: "list[str]") -> Row:
    if isinstance(row, Mapping):
        return dict(row)
    return dict(zip(columns, row))


@mypyc_attr(allow_interpreted_subclasses=True)
class RowStream:
    """Forward-only, single-pass rows backed by an open cursor.

    Not restartable and not safe for concurrent consumers.
    """

    __slots__ = ("_closed", "_cursor", "_fetch_size", "_iterator", "_on_close")

    def __init__(
        self,
        cursor: Any,
        *,
        fetch_size: int = DEFAULT_FETCH_SIZE,
        on_close: "Optional[Callable[[], None]]" = None,
    ) -> None:
        self._closed = False
        self._cursor = cursor
        self._fetch_size = max(1, fetch_size)
        self._on_close = on_close
        self._iterator: Optional[Iterator[Row]] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def _iterate(self) -> "Iterator[Row]":
        try:
            columns = [column[0] for column in self._cursor.description or ()]
            while not self._closed:
                batch = self._cursor.fetchmany(self._fetch_size)
                if not batch:
                    break
                for row in batch:
                    yield row_to_dict(row, columns)
        finally:
            self.close()

    def __iter__(self) -> "Iterator[Row]":
        return self

    def __next__(self) -> Row:
        if self._closed:
            raise StopIteration
        if self._iterator is None:
            self._iterator = self._iterate()
        return next(self._iterator)

    def close(self) -> None:
        """Release the cursor. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            self._cursor.close()
        finally:
            if self._on_close is not None:
                self._on_close()

    def __enter__(self) -> "Self":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            self.close()


@mypyc_attr(allow_interpreted_subclasses=True)
class QueryResult:
    """Rows, row count and optional page metadata of one execution.

    Args:
        rows: A materialized list or a :class:`RowStream`.
        row_count: Rows returned (materialized) or reported by the driver (streamed or written).
        pagination: Page metadata when the statement had a LIMIT.
        last_insert_id: Identifier generated by an INSERT, when the driver reports one.
        from_cache: Whether the result was served from the cache.
    """

    __slots__ = ("from_cache", "last_insert_id", "pagination", "row_count", "rows")

    def __init__(
        self,
        rows: "Union[list[Row], RowStream]",
        row_count: int = 0,
        pagination: "Optional[PageInfo]" = None,
        last_insert_id: Any = None,
        from_cache: bool = False,
    ) -> None:
        self.rows = rows
        self.row_count = row_count
        self.pagination = pagination
        self.last_insert_id = last_insert_id
        self.from_cache = from_cache

    @property
    def is_streaming(self) -> bool:
        return isinstance(self.rows, RowStream)

    def __iter__(self) -> "Iterator[Row]":
        return iter(self.rows)

    def all(self) -> "list[Row]":
        """All remaining rows as a list. A stream is consumed and replaced by the list."""
        if isinstance(self.rows, RowStream):
            self.rows = list(self.rows)
        return self.rows

    def first(self) -> "Optional[Row]":
        """The first row, or ``None``. A stream is closed after the first pull."""
        if isinstance(self.rows, RowStream):
            stream = self.rows
            try:
                return next(stream, None)
            finally:
                stream.close()
        return self.rows[0] if self.rows else None

    def close(self) -> None:
        if isinstance(self.rows, RowStream):
            self.rows.close()

    def __enter__(self) -> "Self":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        kind = "stream" if self.is_streaming else f"{len(self.rows)} rows"  # type: ignore[arg-type]
        return f"QueryResult({kind}, row_count={self.row_count}, pagination={self.pagination!r})"
