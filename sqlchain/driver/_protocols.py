from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

from sqlchain.core.parameters import BoundParameter
from sqlchain.dialects import Dialect

__all__ = ("ConnectionProtocol",)

T = TypeVar("T")


@runtime_checkable
class ConnectionProtocol(Protocol):
    """What the execution engine needs from a database connection."""

    database_errors: "tuple[type[BaseException], ...]"

    @property
    def dialect(self) -> Dialect: ...

    @property
    def driver_name(self) -> str: ...

    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def acquire_handle(self, buffered: bool = True) -> Any: ...

    def open_cursor(self, buffered: bool = True) -> Any: ...

    def execute(self, cursor: Any, sql: str, parameters: "list[BoundParameter]") -> None: ...

    def last_insert_id(self, cursor: Any) -> Any: ...

    def run_in_transaction(self, fn: "Callable[[Any], T]") -> T: ...
