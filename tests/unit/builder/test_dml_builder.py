"""INSERT, batch INSERT, UPDATE, DELETE and raw statements."""

import io

import pytest

from sqlchain.builder import StatementBuilder, StatementKind
from sqlchain.exceptions import ParameterBindingError, SQLBuilderError


def test_insert_binds_one_placeholder_per_column() -> None:
    builder = StatementBuilder("sqlite").insert("users", {"name": "Ada", "age": 36})

    assert builder.render() == 'INSERT INTO "users" ("name", "age") VALUES (:name, :age)'
    assert builder.parameters == {"name": "Ada", "age": 36}
    assert builder.statement_kind is StatementKind.INSERT


def test_insert_sanitizes_placeholder_names() -> None:
    builder = StatementBuilder("postgres").insert("users", {"first name": "Ada"})

    assert builder.render() == 'INSERT INTO "users" ("first name") VALUES (:first_name)'


def test_insert_requires_columns() -> None:
    with pytest.raises(SQLBuilderError):
        StatementBuilder().insert("users", {})


def test_insert_batch_renders_one_group_per_row() -> None:
    rows = [{"name": "a", "age": 1}, {"age": 2, "name": "b"}, {"name": "c", "age": 3}]
    builder = StatementBuilder("mysql").insert_batch("users", rows)

    assert builder.render() == (
        "INSERT INTO `users` (`name`, `age`) VALUES (:name_0, :age_0), (:name_1, :age_1), (:name_2, :age_2)"
    )
    assert builder.parameters == {"name_0": "a", "age_0": 1, "name_1": "b", "age_1": 2, "name_2": "c", "age_2": 3}


def test_insert_batch_rejects_mismatched_columns() -> None:
    rows = [{"name": "a", "age": 1}, {"name": "b", "age": 2}, {"name": "c"}]

    with pytest.raises(SQLBuilderError, match="Row 2") as exc_info:
        StatementBuilder().insert_batch("users", rows)

    assert exc_info.value.fragment == "row 2"


def test_insert_batch_rejects_empty_rows() -> None:
    with pytest.raises(SQLBuilderError, match="at least one row"):
        StatementBuilder().insert_batch("users", [])


def test_insert_batch_validates_before_touching_state() -> None:
    builder = StatementBuilder().select("users")

    with pytest.raises(SQLBuilderError):
        builder.insert_batch("users", [{"a": 1}, {"b": 2}])

    assert builder.render() == 'SELECT * FROM "users"'


def test_update_with_where() -> None:
    builder = StatementBuilder("postgres").update("users", {"status": 0, "name": "x"}).where("id", "=", 5)

    assert builder.render() == 'UPDATE "users" SET "status" = :status, "name" = :name WHERE "id" = :param2'
    assert builder.parameters == {"status": 0, "name": "x", "param2": 5}


def test_delete_with_where() -> None:
    builder = StatementBuilder("mssql").delete("users").where("id", "=", 1)

    assert builder.render() == "DELETE FROM [users] WHERE [id] = :param0"


def test_raw_with_positional_parameters() -> None:
    builder = StatementBuilder().raw("  SELECT * FROM t WHERE a = ? AND b = ?  ", [1, "x"])

    assert builder.render() == "SELECT * FROM t WHERE a = ? AND b = ?"
    assert builder.parameters == {0: 1, 1: "x"}
    assert builder.statement_kind is StatementKind.RAW


def test_raw_with_named_parameters_strips_colons() -> None:
    builder = StatementBuilder().raw("SELECT * FROM t WHERE a = :a", {":a": 1})

    assert builder.parameters == {"a": 1}


def test_raw_can_be_refined() -> None:
    builder = StatementBuilder("mysql").raw("SELECT * FROM t").where("a", "=", 1).limit(5)

    assert builder.render() == "SELECT * FROM t WHERE `a` = :param0 LIMIT 0 , 5"


def test_insert_placeholder_for_leading_digit_column() -> None:
    builder = StatementBuilder("sqlite").insert("accounts", {"2fa": 1})

    assert builder.render() == 'INSERT INTO "accounts" ("2fa") VALUES (:c_2fa)'
    assert builder.parameters == {"c_2fa": 1}


def test_binary_streams_are_read_into_the_statement() -> None:
    builder = StatementBuilder().select("files").where("payload", "=", io.BytesIO(b"x"))
    raw = StatementBuilder().raw("SELECT * FROM files WHERE payload = ?", [io.BytesIO(b"y")])

    assert builder.parameters == {"param0": b"x"}
    assert raw.parameters == {0: b"y"}


def test_raw_rejects_array_parameters() -> None:
    with pytest.raises(ParameterBindingError):
        StatementBuilder().raw("SELECT * FROM t WHERE a IN (:a)", {"a": (1, 2)})


def test_raw_requires_sql() -> None:
    with pytest.raises(SQLBuilderError):
        StatementBuilder().raw("   ")
