"""Cache backends for query results."""

from sqlchain.cache._backend import CacheBackendProtocol
from sqlchain.cache.memory import CacheStats, MemoryCache
from sqlchain.cache.redis import RedisCache

__all__ = ("CacheBackendProtocol", "CacheStats", "MemoryCache", "RedisCache")
