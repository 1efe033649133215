"""Redis cache backend on redis-py."""

from collections.abc import Iterable
from typing import Any, Final, Optional

from sqlchain._serialization import encode_json
from sqlchain.utils.logging import get_logger
from sqlchain.utils.module_loader import import_driver_module

__all__ = ("DEFAULT_REDIS_URL", "RedisCache")

logger = get_logger("cache.redis")

DEFAULT_REDIS_URL: Final = "redis://localhost:6379/0"
DELETE_BATCH_SIZE: Final = 500


class RedisCache:
    """Cache backend storing serialized query results in Redis.

    Values are stored as given when they are ``bytes`` or ``str``; anything else
    is JSON-encoded first. Reads return the raw stored bytes.

    Args:
        client: A ``redis.Redis`` client (or anything with the same methods). Built
            from ``url`` when omitted.
        url: Connection URL used when no client is given.
        default_ttl: Seconds applied when :meth:`set` gets no TTL. ``None`` stores without expiry.

    Raises:
        MissingDependencyError: No client was given and redis-py is not installed.
    """

    __slots__ = ("_client", "default_ttl")

    def __init__(
        self, client: Optional[Any] = None, *, url: str = DEFAULT_REDIS_URL, default_ttl: Optional[int] = None
    ) -> None:
        if client is None:
            redis = import_driver_module("redis", "redis")
            client = redis.Redis.from_url(url)
        self._client = client
        self.default_ttl = default_ttl

    @property
    def client(self) -> Any:
        return self._client

    def has(self, key: str) -> bool:
        return int(self._client.exists(key)) > 0

    def get(self, key: str) -> Optional[Any]:
        return self._client.get(key)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store ``value`` with ``SETEX``; a non-positive TTL removes the key instead."""
        payload = value if isinstance(value, (bytes, str)) else encode_json(value, as_bytes=True)
        effective_ttl = self.default_ttl if ttl is None else ttl
        if effective_ttl is None:
            return bool(self._client.set(key, payload))
        if effective_ttl <= 0:
            self._client.delete(key)
            return False
        return bool(self._client.setex(key, effective_ttl, payload))

    def delete(self, key: str) -> bool:
        return int(self._client.delete(key)) > 0

    def delete_pattern(self, pattern: str) -> bool:
        """Delete every key matching the glob ``pattern``, found with ``SCAN``. True when anything was removed."""
        deleted = 0
        batch: list[Any] = []
        for key in self._client.scan_iter(match=pattern):
            batch.append(key)
            if len(batch) >= DELETE_BATCH_SIZE:
                deleted += int(self._client.delete(*batch))
                batch = []
        if batch:
            deleted += int(self._client.delete(*batch))
        if deleted:
            logger.debug("Deleted %d cache entries matching %s", deleted, pattern)
        return deleted > 0

    def clear(self) -> bool:
        """Flush the whole Redis database the client points at."""
        return bool(self._client.flushdb())

    def get_multiple(self, keys: Iterable[str]) -> "dict[str, Any]":
        """Values for the keys that are present, fetched with one ``MGET``."""
        wanted = list(keys)
        if not wanted:
            return {}
        values = self._client.mget(wanted)
        return {key: value for key, value in zip(wanted, values) if value is not None}

    def close(self) -> None:
        self._client.close()
