"""sqlchain: fluent SQL statement builder with a caching, streaming execution engine."""

from sqlchain import exceptions
from sqlchain.builder import JoinType, OrderDirection, SqlOperator, StatementBuilder
from sqlchain.cache import MemoryCache, RedisCache
from sqlchain.config import DatabaseSettings, EngineConfig, load_engine_config_from_env, load_settings_from_env
from sqlchain.core.cache import QueryCache, create_cache_key
from sqlchain.core.pagination import PageInfo, Paginator, paginate
from sqlchain.core.parameters import ParameterKind, ParameterStyle
from sqlchain.core.result import QueryResult, RowStream
from sqlchain.dialects import Dialect
from sqlchain.driver import DBAPIConnection, SqliteConnection, create_connection
from sqlchain.execution import QueryBuilder
from sqlchain.factory import create_query_builder
from sqlchain.observability import FileQueryLogger, LoggingQueryLogger

__all__ = (
    "DBAPIConnection",
    "DatabaseSettings",
    "Dialect",
    "EngineConfig",
    "FileQueryLogger",
    "JoinType",
    "LoggingQueryLogger",
    "MemoryCache",
    "OrderDirection",
    "PageInfo",
    "Paginator",
    "ParameterKind",
    "ParameterStyle",
    "QueryBuilder",
    "QueryCache",
    "QueryResult",
    "RedisCache",
    "RowStream",
    "SqlOperator",
    "SqliteConnection",
    "StatementBuilder",
    "create_cache_key",
    "create_connection",
    "create_query_builder",
    "exceptions",
    "paginate",
)
