import pytest

from sqlchain.exceptions import (
    CacheError,
    DatabaseConnectionError,
    MissingDependencyError,
    ParameterBindingError,
    QueryError,
    SQLBuilderError,
    SQLChainError,
    TransactionError,
)


def test_builder_error_includes_fragment() -> None:
    error = SQLBuilderError("Bad operator", fragment="~~")

    assert str(error) == "Bad operator (Fragment: ~~)"
    assert error.fragment == "~~"
    assert repr(error) == "SQLBuilderError - Bad operator (Fragment: ~~)"


def test_parameter_binding_error_is_a_builder_error() -> None:
    error = ParameterBindingError("array value", parameter="ids")

    assert isinstance(error, SQLBuilderError)
    assert error.parameter == "ids"


def test_query_error_detailed_message() -> None:
    try:
        try:
            raise RuntimeError("driver says no")
        except RuntimeError as exc:
            raise QueryError("Query failed", sql="SELECT 1", parameters={"a": "x"}) from exc
    except QueryError as error:
        assert error.detailed_message == "Query failed | SQL: SELECT 1 | Bindings: [a='x'] | Previous: driver says no"


@pytest.mark.parametrize("error_type", [DatabaseConnectionError, TransactionError])
def test_connection_errors_are_query_errors(error_type: type) -> None:
    assert issubclass(error_type, QueryError)
    assert issubclass(error_type, SQLChainError)


def test_cache_error_key() -> None:
    assert CacheError("bad entry", key="query:1").key == "query:1"


def test_missing_dependency_suggests_extra() -> None:
    error = MissingDependencyError("psycopg")

    assert isinstance(error, ImportError)
    assert "sqlchain[psycopg]" in str(error)
