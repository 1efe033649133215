import pytest

from sqlchain.core.statement import detect_operation_type, normalize_sql, parse_statement, returns_rows


@pytest.mark.parametrize(
    ("sql", "expected"),
    [
        ("SELECT 1", "SELECT"),
        ("INSERT INTO t (a) VALUES (1)", "INSERT"),
        ("UPDATE t SET a = 1", "UPDATE"),
        ("DELETE FROM t", "DELETE"),
        ("CREATE TABLE t (a INT)", "DDL"),
    ],
)
def test_detect_operation_type(sql: str, expected: str) -> None:
    assert detect_operation_type(parse_statement(sql)) == expected


@pytest.mark.parametrize(
    ("sql", "dialect", "expected"),
    [
        ("SELECT * FROM t", None, True),
        ("WITH x AS (SELECT 1) SELECT * FROM x", None, True),
        ("UPDATE t SET a = 1", None, False),
        ("INSERT INTO t (a) VALUES (1) RETURNING id", "postgres", True),
        ("DELETE FROM t", None, False),
        ("CREATE TABLE t (a INT)", None, False),
    ],
)
def test_returns_rows(sql: str, dialect: "str | None", expected: bool) -> None:
    assert returns_rows(parse_statement(sql, dialect)) is expected


def test_unparsed_statement_defaults() -> None:
    assert detect_operation_type(None) == "UNKNOWN"
    assert returns_rows(None) is False


def test_normalize_sql_ignores_formatting() -> None:
    assert normalize_sql("select  *\n  from t where a = :a") == normalize_sql("SELECT * FROM t WHERE a = :a")
