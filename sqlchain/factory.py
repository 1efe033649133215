"""Assemble a ready-to-use :class:`~sqlchain.execution.QueryBuilder`."""

from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from sqlchain.cache.memory import MemoryCache
from sqlchain.cache.redis import DEFAULT_REDIS_URL, RedisCache
from sqlchain.config import (
    DatabaseSettings,
    EngineConfig,
    load_engine_config_from_env,
    load_settings_from_env,
)
from sqlchain.core.cache import QueryCache
from sqlchain.core.pagination import Paginator
from sqlchain.driver import create_connection
from sqlchain.exceptions import ImproperConfigurationError
from sqlchain.execution import QueryBuilder
from sqlchain.observability import FileQueryLogger, LoggingQueryLogger
from sqlchain.utils.logging import get_logger
from sqlchain.utils.module_loader import import_string

if TYPE_CHECKING:
    from sqlchain.cache._backend import CacheBackendProtocol
    from sqlchain.observability import QueryLoggerProtocol

__all__ = ("create_cache_backend", "create_query_builder", "create_query_logger")

logger = get_logger("factory")


def create_cache_backend(config: EngineConfig) -> "CacheBackendProtocol":
    """Instantiate the configured cache backend.

    ``"memory"`` (or no backend and no Redis URL) gives a :class:`MemoryCache`;
    ``"redis"`` (or no backend with ``cache_redis_url`` set) gives a :class:`RedisCache`.
    Anything else is imported as a dotted path and instantiated without arguments.

    Raises:
        ImproperConfigurationError: ``cache_backend`` cannot be imported.
        MissingDependencyError: Redis was selected and redis-py is not installed.
    """
    backend = (config.cache_backend or "").strip()
    if not backend:
        backend = "redis" if config.cache_redis_url else "memory"
    if backend.lower() == "memory":
        return MemoryCache(max_size=config.cache_max_size, default_ttl=config.cache_ttl)
    if backend.lower() == "redis":
        logger.debug("Using Redis query cache")
        return RedisCache(url=config.cache_redis_url or DEFAULT_REDIS_URL, default_ttl=config.cache_ttl)
    try:
        backend_class = import_string(backend)
    except ImportError as exc:
        msg = f"Cannot load cache backend {config.cache_backend!r}: {exc}"
        raise ImproperConfigurationError(msg) from exc
    return backend_class()  # type: ignore[no-any-return]


def create_query_logger(config: EngineConfig) -> "Optional[QueryLoggerProtocol]":
    if not config.log_queries:
        return None
    if config.query_log_path:
        return FileQueryLogger(config.query_log_path)
    return LoggingQueryLogger()


def create_query_builder(
    settings: Optional[DatabaseSettings] = None,
    cache: "Union[QueryCache, CacheBackendProtocol, None]" = None,
    query_logger: "Optional[QueryLoggerProtocol]" = None,
    *,
    engine_config: Optional[EngineConfig] = None,
    connect: "Optional[Callable[[], Any]]" = None,
) -> QueryBuilder:
    """Wire settings, connection, paginator, cache and query logger into a builder.

    Anything not passed is taken from the environment: ``DB_*`` variables for the
    connection and ``SQLCHAIN_*`` variables for the engine.

    Args:
        settings: Connection settings.
        cache: Cache or cache backend; built from ``engine_config`` when omitted.
        query_logger: Query logger; built from ``engine_config`` when omitted.
        engine_config: Engine configuration.
        connect: Callable returning a DB-API connection, for drivers without bundled support.

    Raises:
        ImproperConfigurationError: Settings are missing or invalid.
        MissingDependencyError: The database driver is not installed.
    """
    settings = settings or load_settings_from_env()
    engine_config = engine_config or load_engine_config_from_env()

    if cache is None:
        cache = create_cache_backend(engine_config)
    query_cache = cache if isinstance(cache, QueryCache) else QueryCache(cache, engine_config.cache_key_prefix)
    if query_logger is None:
        query_logger = create_query_logger(engine_config)

    logger.debug("Creating query builder for %s", settings.dialect.value)
    return QueryBuilder(
        create_connection(settings, connect),
        paginator=Paginator(),
        cache=query_cache,
        query_logger=query_logger,
        default_cache_ttl=engine_config.cache_ttl,
    )
