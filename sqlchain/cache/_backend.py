from collections.abc import Iterable, Mapping
from typing import Any, Optional, Protocol, runtime_checkable

__all__ = ("CacheBackendProtocol",)


@runtime_checkable
class CacheBackendProtocol(Protocol):
    """Key/value store holding serialized query results.

    Values are opaque to the backend. Implementations may raise on failure; the
    engine treats any exception as a cache miss.
    """

    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool: ...

    def delete(self, key: str) -> bool: ...

    def delete_pattern(self, pattern: str) -> bool: ...

    def clear(self) -> bool: ...

    def get_multiple(self, keys: Iterable[str]) -> Mapping[str, Any]: ...
