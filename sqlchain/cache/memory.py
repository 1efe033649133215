"""In-process cache backend with LRU eviction and per-entry TTL."""

import fnmatch
import threading
import time
from collections.abc import Iterable
from typing import Any, Final, Optional

from mypy_extensions import mypyc_attr

from sqlchain.utils.logging import get_logger

__all__ = ("CacheStats", "MemoryCache")

logger = get_logger("cache.memory")

DEFAULT_MAX_SIZE: Final = 1000
DEFAULT_TTL_SECONDS: Final = 3600

CACHE_NODE_SLOTS: Final = ("expires_at", "key", "next", "prev", "value")
MEMORY_CACHE_SLOTS: Final = ("_default_ttl", "_entries", "_head", "_lock", "_max_size", "_stats", "_tail")


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheStats:
    """Hit, miss and eviction counters."""

    __slots__ = ("evictions", "hits", "misses")

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __repr__(self) -> str:
        return (
            f"CacheStats(hit_rate={self.hit_rate:.1f}%, "
            f"hits={self.hits}, misses={self.misses}, evictions={self.evictions})"
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class _CacheNode:
    __slots__ = CACHE_NODE_SLOTS

    def __init__(self, key: str, value: Any, expires_at: Optional[float]) -> None:
        self.key = key
        self.value = value
        self.expires_at = expires_at
        self.prev: Optional[_CacheNode] = None
        self.next: Optional[_CacheNode] = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


@mypyc_attr(allow_interpreted_subclasses=False)
class MemoryCache:
    """Thread-safe in-memory cache.

    The least recently used entry is evicted once ``max_size`` is exceeded.
    Expired entries are dropped lazily on access.

    Args:
        max_size: Maximum number of entries.
        default_ttl: TTL in seconds applied when ``set`` gets none; ``None`` never expires.
    """

    __slots__ = MEMORY_CACHE_SLOTS

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, default_ttl: Optional[int] = DEFAULT_TTL_SECONDS) -> None:
        self._entries: dict[str, _CacheNode] = {}
        self._lock = threading.RLock()
        self._max_size = max(1, max_size)
        self._default_ttl = default_ttl
        self._stats = CacheStats()

        self._head = _CacheNode("", None, None)
        self._tail = _CacheNode("", None, None)
        self._head.next = self._tail
        self._tail.prev = self._head

    def _live_node(self, key: str) -> Optional[_CacheNode]:
        node = self._entries.get(key)
        if node is None:
            return None
        if node.expired(time.time()):
            self._unlink(node)
            del self._entries[key]
            self._stats.evictions += 1
            return None
        return node

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_node(key) is not None

    def get(self, key: str) -> Optional[Any]:
        """Value stored under ``key``, or ``None`` when absent or expired."""
        with self._lock:
            node = self._live_node(key)
            if node is None:
                self._stats.misses += 1
                return None
            self._move_to_head(node)
            self._stats.hits += 1
            return node.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store ``value``; ``ttl`` seconds override the default TTL."""
        effective_ttl = self._default_ttl if ttl is None else ttl
        expires_at = time.time() + effective_ttl if effective_ttl is not None else None
        with self._lock:
            node = self._entries.get(key)
            if node is not None:
                node.value = value
                node.expires_at = expires_at
                self._move_to_head(node)
                return True

            node = _CacheNode(key, value, expires_at)
            self._entries[key] = node
            self._add_to_head(node)

            if len(self._entries) > self._max_size:
                lru = self._tail.prev
                if lru is not None and lru is not self._head:
                    self._unlink(lru)
                    del self._entries[lru.key]
                    self._stats.evictions += 1
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            node = self._entries.pop(key, None)
            if node is None:
                return False
            self._unlink(node)
            return True

    def delete_pattern(self, pattern: str) -> bool:
        """Delete every key matching the glob ``pattern`` (``query:*``). True when anything was removed."""
        with self._lock:
            matched = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
            for key in matched:
                self._unlink(self._entries.pop(key))
        if matched:
            logger.debug("Deleted %d cache entries matching %s", len(matched), pattern)
        return bool(matched)

    def clear(self) -> bool:
        with self._lock:
            self._entries.clear()
            self._head.next = self._tail
            self._tail.prev = self._head
            self._stats.reset()
        return True

    def get_multiple(self, keys: Iterable[str]) -> "dict[str, Any]":
        """Values for the keys that are present; missing keys are left out."""
        found: dict[str, Any] = {}
        for key in keys:
            value = self.get(key)
            if value is not None:
                found[key] = value
        return found

    def get_stats(self) -> CacheStats:
        return self._stats

    def _add_to_head(self, node: _CacheNode) -> None:
        node.prev = self._head
        head_next = self._head.next
        node.next = head_next
        if head_next is not None:
            head_next.prev = node
        self._head.next = node

    def _unlink(self, node: _CacheNode) -> None:
        node_prev = node.prev
        node_next = node.next
        if node_prev is not None:
            node_prev.next = node_next
        if node_next is not None:
            node_next.prev = node_prev

    def _move_to_head(self, node: _CacheNode) -> None:
        self._unlink(node)
        self._add_to_head(node)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)
