import pytest

from sqlchain.config import DatabaseSettings, EngineConfig, load_engine_config_from_env, load_settings_from_env
from sqlchain.dialects import Dialect
from sqlchain.exceptions import ImproperConfigurationError


def test_sqlite_needs_no_host() -> None:
    settings = DatabaseSettings(driver="sqlite")

    assert settings.dialect is Dialect.SQLITE
    assert settings.to_connect_kwargs() == {"database": ":memory:"}


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"driver": "mysql", "database": "app"}, "host is required"),
        ({"driver": "pgsql", "host": "db"}, "database is required"),
        ({"driver": "mysql", "host": "db", "database": "app", "port": 0}, "port must be positive"),
        ({"driver": "firebird"}, "Unsupported database driver"),
        ({"driver": ""}, "driver is required"),
    ],
)
def test_invalid_settings(kwargs: dict, message: str) -> None:
    with pytest.raises(ImproperConfigurationError, match=message):
        DatabaseSettings(**kwargs)


def test_password_is_not_in_repr() -> None:
    assert "secret" not in repr(DatabaseSettings(driver="sqlite", password="secret"))


@pytest.mark.parametrize(
    ("driver", "expected"),
    [
        (
            "pgsql",
            {"host": "db", "port": 5432, "dbname": "app", "user": "u", "password": "p"},
        ),
        (
            "mariadb",
            {"host": "db", "port": 3306, "database": "app", "user": "u", "password": "p", "charset": "utf8mb4"},
        ),
        ("oracle", {"user": "u", "password": "p", "dsn": "db:1521/app"}),
        ("sqlsrv", {"server": "db", "port": 1433, "database": "app", "user": "u", "password": "p"}),
    ],
)
def test_connect_kwargs_per_driver(driver: str, expected: dict) -> None:
    settings = DatabaseSettings(driver=driver, host="db", database="app", username="u", password="p")

    assert settings.to_connect_kwargs() == expected


def test_explicit_port_collation_and_options() -> None:
    settings = DatabaseSettings(
        driver="mysql",
        host="db",
        database="app",
        port=3307,
        collation="utf8mb4_unicode_ci",
        options={"connect_timeout": 5},
    )

    kwargs = settings.to_connect_kwargs()
    assert kwargs["port"] == 3307
    assert kwargs["collation"] == "utf8mb4_unicode_ci"
    assert kwargs["connect_timeout"] == 5


def test_load_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DB_DRIVER", "pgsql")
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_PORT", "6432")
    monkeypatch.setenv("DB_DATABASE", "app")
    monkeypatch.setenv("DB_USERNAME", "svc")
    monkeypatch.setenv("DB_PASSWORD", "pw")

    settings = load_settings_from_env()

    assert settings.dialect is Dialect.POSTGRES
    assert settings.port == 6432
    assert settings.username == "svc"


def test_load_settings_requires_driver(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DB_DRIVER", raising=False)

    with pytest.raises(ImproperConfigurationError, match="DB_DRIVER"):
        load_settings_from_env()


def test_invalid_port_falls_back(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    monkeypatch.setenv("DB_DRIVER", "mysql")
    monkeypatch.setenv("DB_HOST", "db")
    monkeypatch.setenv("DB_DATABASE", "app")
    monkeypatch.setenv("DB_PORT", "not-a-port")

    settings = load_settings_from_env()

    assert settings.port is None
    assert settings.effective_port == 3306
    assert "Invalid integer value for DB_PORT" in caplog.text


def test_engine_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SQLCHAIN_CACHE_TTL",
        "SQLCHAIN_CACHE_MAX_SIZE",
        "SQLCHAIN_CACHE_BACKEND",
        "SQLCHAIN_CACHE_KEY_PREFIX",
        "SQLCHAIN_LOG_QUERIES",
        "SQLCHAIN_QUERY_LOG_PATH",
    ):
        monkeypatch.delenv(name, raising=False)

    assert load_engine_config_from_env() == EngineConfig()


def test_engine_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SQLCHAIN_CACHE_TTL", "120")
    monkeypatch.setenv("SQLCHAIN_CACHE_MAX_SIZE", "50")
    monkeypatch.setenv("SQLCHAIN_CACHE_KEY_PREFIX", "app:")
    monkeypatch.setenv("SQLCHAIN_LOG_QUERIES", "yes")
    monkeypatch.setenv("SQLCHAIN_QUERY_LOG_PATH", "/tmp/q.log")

    config = load_engine_config_from_env()

    assert config.cache_ttl == 120
    assert config.cache_max_size == 50
    assert config.cache_key_prefix == "app:"
    assert config.log_queries is True
    assert config.query_log_path == "/tmp/q.log"
