"""Connection settings and engine configuration.

Both can be built directly or loaded from environment variables:

- ``DB_DRIVER``, ``DB_HOST``, ``DB_PORT``, ``DB_DATABASE``, ``DB_USERNAME``,
  ``DB_PASSWORD``, ``DB_CHARSET``, ``DB_COLLATION`` for :class:`DatabaseSettings`
- ``SQLCHAIN_CACHE_TTL``, ``SQLCHAIN_CACHE_MAX_SIZE``, ``SQLCHAIN_CACHE_BACKEND``,
  ``SQLCHAIN_CACHE_REDIS_URL``, ``SQLCHAIN_CACHE_KEY_PREFIX``, ``SQLCHAIN_LOG_QUERIES``,
  ``SQLCHAIN_QUERY_LOG_PATH`` for :class:`EngineConfig`
"""

import os
from dataclasses import dataclass, field
from typing import Any, Final, Optional

from sqlchain.dialects import Dialect
from sqlchain.exceptions import ImproperConfigurationError
from sqlchain.utils.logging import get_logger

__all__ = (
    "DEFAULT_PORTS",
    "DatabaseSettings",
    "EngineConfig",
    "load_engine_config_from_env",
    "load_settings_from_env",
)

logger = get_logger("config")

DEFAULT_PORTS: Final[dict[Dialect, int]] = {
    Dialect.MYSQL: 3306,
    Dialect.MARIADB: 3306,
    Dialect.POSTGRES: 5432,
    Dialect.MSSQL: 1433,
    Dialect.ORACLE: 1521,
}


@dataclass(frozen=True)
class DatabaseSettings:
    """Where and how to connect.

    Raises:
        ImproperConfigurationError: The settings are incomplete for the chosen driver.
    """

    driver: str
    database: str = ""
    host: str = ""
    port: Optional[int] = None
    username: str = ""
    password: str = field(default="", repr=False)
    charset: str = "utf8mb4"
    collation: str = ""
    options: "dict[str, Any]" = field(default_factory=dict)

    def __post_init__(self) -> None:
        errors = self.validate()
        if errors:
            raise ImproperConfigurationError("Invalid database settings: " + "; ".join(errors))

    def validate(self) -> "list[str]":
        """Validation errors; empty when the settings are usable."""
        if not self.driver:
            return ["driver is required"]
        try:
            dialect = Dialect.from_driver_name(self.driver)
        except ImproperConfigurationError as exc:
            return [str(exc)]
        errors = []
        if dialect is not Dialect.SQLITE:
            if not self.host:
                errors.append("host is required")
            if not self.database:
                errors.append("database is required")
        if self.port is not None and self.port <= 0:
            errors.append(f"port must be positive, got {self.port}")
        return errors

    @property
    def dialect(self) -> Dialect:
        return Dialect.from_driver_name(self.driver)

    @property
    def effective_port(self) -> Optional[int]:
        return self.port if self.port is not None else DEFAULT_PORTS.get(self.dialect)

    def to_connect_kwargs(self) -> "dict[str, Any]":
        """Keyword arguments for the DB-API ``connect()`` of the dialect's driver."""
        dialect = self.dialect
        kwargs: dict[str, Any]
        if dialect is Dialect.SQLITE:
            kwargs = {"database": self.database or ":memory:"}
        elif dialect is Dialect.POSTGRES:
            kwargs = {
                "host": self.host,
                "port": self.effective_port,
                "dbname": self.database,
                "user": self.username,
                "password": self.password,
            }
        elif dialect in {Dialect.MYSQL, Dialect.MARIADB}:
            kwargs = {
                "host": self.host,
                "port": self.effective_port,
                "database": self.database,
                "user": self.username,
                "password": self.password,
                "charset": self.charset,
            }
            if self.collation:
                kwargs["collation"] = self.collation
        elif dialect is Dialect.ORACLE:
            kwargs = {
                "user": self.username,
                "password": self.password,
                "dsn": f"{self.host}:{self.effective_port}/{self.database}",
            }
        else:
            kwargs = {
                "server": self.host,
                "port": self.effective_port,
                "database": self.database,
                "user": self.username,
                "password": self.password,
            }
        kwargs.update(self.options)
        return kwargs


@dataclass(frozen=True)
class EngineConfig:
    """Execution engine behaviour.

    ``cache_backend`` is ``"memory"``, ``"redis"`` or a dotted import path of a cache
    backend class. When unset, Redis is used if ``cache_redis_url`` is set and an
    in-memory cache otherwise.
    """

    cache_ttl: int = 3600
    cache_max_size: int = 1000
    cache_backend: Optional[str] = None
    cache_redis_url: Optional[str] = None
    cache_key_prefix: str = "query:"
    log_queries: bool = False
    query_log_path: Optional[str] = None


def load_settings_from_env() -> DatabaseSettings:
    """Build :class:`DatabaseSettings` from ``DB_*`` environment variables.

    Raises:
        ImproperConfigurationError: ``DB_DRIVER`` is missing or the resulting settings are invalid.
    """
    driver = os.getenv("DB_DRIVER", "")
    if not driver:
        msg = "DB_DRIVER environment variable is not set"
        raise ImproperConfigurationError(msg)
    return DatabaseSettings(
        driver=driver,
        database=os.getenv("DB_DATABASE", ""),
        host=os.getenv("DB_HOST", ""),
        port=_env_int("DB_PORT", 0) or None,
        username=os.getenv("DB_USERNAME", ""),
        password=os.getenv("DB_PASSWORD", ""),
        charset=os.getenv("DB_CHARSET", "utf8mb4"),
        collation=os.getenv("DB_COLLATION", ""),
    )


def load_engine_config_from_env() -> EngineConfig:
    return EngineConfig(
        cache_ttl=_env_int("SQLCHAIN_CACHE_TTL", 3600),
        cache_max_size=_env_int("SQLCHAIN_CACHE_MAX_SIZE", 1000),
        cache_backend=os.getenv("SQLCHAIN_CACHE_BACKEND") or None,
        cache_redis_url=os.getenv("SQLCHAIN_CACHE_REDIS_URL") or None,
        cache_key_prefix=os.getenv("SQLCHAIN_CACHE_KEY_PREFIX", "query:"),
        log_queries=_env_bool("SQLCHAIN_LOG_QUERIES", False),
        query_log_path=os.getenv("SQLCHAIN_QUERY_LOG_PATH") or None,
    )


def _env_bool(key: str, default: bool) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on", "enabled")


def _env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid integer value for %s: %s, using default %d", key, value, default)
        return default
