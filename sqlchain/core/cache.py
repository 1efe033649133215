"""Result caching on top of a cache backend.

Keys are derived from the normalized SQL text and the bound parameters. Payloads
are stored as msgspec JSON and validated against :class:`CachePayload` on the way
back, so a corrupt or foreign entry reads as a miss instead of a wrong result.
"""

import hashlib
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final, Optional, Union

import msgspec
from mypy_extensions import mypyc_attr

from sqlchain._serialization import decode_json, encode_json
from sqlchain.core.pagination import PageInfo
from sqlchain.core.statement import normalize_sql
from sqlchain.exceptions import CacheError, SerializationError
from sqlchain.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlchain.cache._backend import CacheBackendProtocol

__all__ = (
    "DEFAULT_CACHE_TTL",
    "DEFAULT_KEY_PREFIX",
    "CachePayload",
    "PagePayload",
    "QueryCache",
    "create_cache_key",
)

logger = get_logger("core.cache")

DEFAULT_CACHE_TTL: Final = 3600
DEFAULT_KEY_PREFIX: Final = "query:"


class PagePayload(msgspec.Struct, frozen=True):
    current_page: int
    per_page: int
    total_pages: int
    total_items: int

    @classmethod
    def from_page_info(cls, page: PageInfo) -> "PagePayload":
        return cls(page.current_page, page.per_page, page.total_pages, page.total_items)

    def to_page_info(self) -> PageInfo:
        return PageInfo(self.current_page, self.per_page, self.total_pages, self.total_items)


class CachePayload(msgspec.Struct):
    """Shape of a cached result. Unknown fields are ignored; ``count`` defaults to ``len(rows)``."""

    rows: "list[dict[str, Any]]"
    count: Optional[int] = None
    pagination: Optional[PagePayload] = None
    cached_at: float = 0.0
    ttl: int = DEFAULT_CACHE_TTL

    def __post_init__(self) -> None:
        if self.count is None:
            self.count = len(self.rows)


def _parameter_items(parameters: "Mapping[Union[str, int], Any]") -> "list[tuple[str, Any]]":
    return sorted(((str(key).lstrip(":"), value) for key, value in parameters.items()), key=lambda item: item[0])


def create_cache_key(
    sql: str,
    parameters: "Optional[Mapping[Union[str, int], Any]]" = None,
    dialect: Optional[str] = None,
    key_prefix: str = DEFAULT_KEY_PREFIX,
) -> str:
    """Deterministic key for ``sql`` with ``parameters``.

    Formatting differences in the SQL do not change the key; any difference in a
    parameter name or value does.

    Raises:
        SerializationError: A parameter value cannot be encoded.
    """
    normalized = normalize_sql(sql, dialect)
    encoded_parameters = encode_json(_parameter_items(parameters or {}), as_bytes=True)
    digest = hashlib.sha256()
    digest.update(normalized.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(encoded_parameters)
    return f"{key_prefix}{digest.hexdigest()}"


def decode_payload(raw: Any) -> CachePayload:
    """Validate a value read from a backend.

    Raises:
        CacheError: The value is not a well-formed payload.
    """
    try:
        data = decode_json(raw) if isinstance(raw, (str, bytes, bytearray)) else raw
        return msgspec.convert(data, CachePayload)
    except (SerializationError, msgspec.ValidationError) as exc:
        msg = f"Malformed cache payload: {exc}"
        raise CacheError(msg) from exc


@mypyc_attr(allow_interpreted_subclasses=True)
class QueryCache:
    """Reads and writes query results through a backend, absorbing every cache fault.

    Args:
        backend: Any object implementing :class:`~sqlchain.cache.CacheBackendProtocol`.
        key_prefix: Prepended to every key, so all entries can be dropped with one pattern delete.
    """

    __slots__ = ("backend", "key_prefix")

    def __init__(self, backend: "CacheBackendProtocol", key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self.backend = backend
        self.key_prefix = key_prefix

    def make_key(
        self, sql: str, parameters: "Mapping[Union[str, int], Any]", dialect: Optional[str] = None
    ) -> Optional[str]:
        """Cache key, or ``None`` when the parameters cannot be keyed."""
        try:
            return create_cache_key(sql, parameters, dialect, self.key_prefix)
        except SerializationError as exc:
            logger.warning("Query cache disabled for statement, parameters cannot be keyed: %s", exc)
            return None

    def load(self, key: str) -> Optional[CachePayload]:
        """Payload stored under ``key``; ``None`` on a miss, a backend failure or a malformed entry."""
        try:
            raw = self.backend.get(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Query cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            logger.debug("Query cache miss: %s", key)
            return None
        try:
            payload = decode_payload(raw)
        except CacheError as exc:
            logger.warning("Discarding cache entry %s: %s", key, exc)
            return None
        logger.debug("Query cache hit: %s", key)
        return payload

    def store(
        self,
        key: str,
        rows: "list[dict[str, Any]]",
        count: int,
        pagination: Optional[PageInfo],
        ttl: int,
    ) -> bool:
        """Persist a result; returns ``False`` when the entry could not be written."""
        payload = CachePayload(
            rows=rows,
            count=count,
            pagination=PagePayload.from_page_info(pagination) if pagination is not None else None,
            cached_at=time.time(),
            ttl=ttl,
        )
        try:
            encoded = encode_json(payload, as_bytes=True)
            self.backend.set(key, encoded, ttl)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Query cache write failed for %s: %s", key, exc)
            return False
        return True

    def invalidate(self, key: str) -> bool:
        try:
            return bool(self.backend.delete(key))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Query cache delete failed for %s: %s", key, exc)
            return False

    def invalidate_all(self) -> bool:
        """Drop every entry under this cache's key prefix."""
        try:
            return bool(self.backend.delete_pattern(f"{self.key_prefix}*"))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Query cache pattern delete failed for %s*: %s", self.key_prefix, exc)
            return False
