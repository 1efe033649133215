"""SELECT rendering, WHERE predicates and OR-groups."""

import pytest

from sqlchain.builder import SqlOperator, StatementBuilder
from sqlchain.exceptions import ParameterBindingError, SQLBuilderError


@pytest.fixture
def builder() -> StatementBuilder:
    return StatementBuilder("sqlite")


@pytest.mark.parametrize(
    ("dialect", "expected"),
    [
        ("sqlite", 'SELECT * FROM "users"'),
        ("postgres", 'SELECT * FROM "users"'),
        ("mysql", "SELECT * FROM `users`"),
        ("mariadb", "SELECT * FROM `users`"),
        ("mssql", "SELECT * FROM [users]"),
        ("oracle", 'SELECT * FROM "users"'),
    ],
)
def test_select_defaults_to_star_and_quotes_table(dialect: str, expected: str) -> None:
    assert StatementBuilder(dialect).select("users").render() == expected


def test_select_fields_are_emitted_raw() -> None:
    sql = StatementBuilder("mysql").select("users", ["id", "COUNT(*) AS n", "u.name"]).render()
    assert sql == "SELECT id, COUNT(*) AS n, u.name FROM `users`"


def test_select_accepts_single_field_string(builder: StatementBuilder) -> None:
    assert builder.select("users", "id").render() == 'SELECT id FROM "users"'


def test_select_with_alias(builder: StatementBuilder) -> None:
    assert builder.select("users").alias("u").render() == 'SELECT * FROM "users" AS "u"'


def test_where_uses_parameter_count_for_placeholder(builder: StatementBuilder) -> None:
    builder.select("users").where("status", "=", 1).where("age", SqlOperator.GREATER_THAN, 18)

    assert builder.render() == 'SELECT * FROM "users" WHERE "status" = :param0 AND "age" > :param1'
    assert builder.parameters == {"param0": 1, "param1": 18}


def test_or_where_groups_with_previous_predicate(builder: StatementBuilder) -> None:
    builder.select("users").where("a", "=", 1).or_where("b", "LIKE", "%x%")

    assert builder.render() == 'SELECT * FROM "users" WHERE ("a" = :param0 OR "b" LIKE :param1)'


def test_or_group_is_anded_with_later_where(builder: StatementBuilder) -> None:
    builder.select("users").where("a", "=", 1).or_where("b", "=", 2).or_where("c", "=", 3).where("d", "=", 4)

    assert builder.render() == (
        'SELECT * FROM "users" WHERE ("a" = :param0 OR "b" = :param1 OR "c" = :param2) AND "d" = :param3'
    )


def test_or_where_only_pops_the_immediately_preceding_predicate(builder: StatementBuilder) -> None:
    builder.select("users").where("a", "=", 1).where("b", "=", 2).or_where("c", "=", 3)

    assert builder.render() == 'SELECT * FROM "users" WHERE "a" = :param0 AND ("b" = :param1 OR "c" = :param2)'


def test_or_where_without_previous_predicate(builder: StatementBuilder) -> None:
    assert builder.select("users").or_where("a", "=", 1).render() == 'SELECT * FROM "users" WHERE ("a" = :param0)'


def test_render_is_idempotent_with_pending_or_group(builder: StatementBuilder) -> None:
    builder.select("users").where("a", "=", 1).or_where("b", "=", 2)

    first = builder.render()
    assert builder.render() == first
    assert builder.get_query_sql() == first

    builder.or_where("c", "=", 3)
    assert builder.render() == 'SELECT * FROM "users" WHERE ("a" = :param0 OR "b" = :param1 OR "c" = :param2)'


def test_where_in_and_not_in(builder: StatementBuilder) -> None:
    builder.select("users").where_in("id", [1, 2, 3]).where_not_in("u.role", ["admin"])

    assert builder.render() == (
        'SELECT * FROM "users" WHERE "id" IN (:id_in_0, :id_in_1, :id_in_2) AND "u"."role" NOT IN (:u_role_notin_0)'
    )
    assert builder.parameters == {"id_in_0": 1, "id_in_1": 2, "id_in_2": 3, "u_role_notin_0": "admin"}


def test_repeated_placeholder_names_get_a_suffix(builder: StatementBuilder) -> None:
    builder.select("users").where_in("id", [1]).where_in("id", [2])

    assert builder.render() == 'SELECT * FROM "users" WHERE "id" IN (:id_in_0) AND "id" IN (:id_in_0_1)'
    assert builder.parameters == {"id_in_0": 1, "id_in_0_1": 2}


def test_where_between_and_not_between(builder: StatementBuilder) -> None:
    builder.select("users").where_between("age", [18, 30]).where_not_between("score", (1, 5))

    assert builder.render() == (
        'SELECT * FROM "users" WHERE "age" BETWEEN :age_bt1 AND :age_bt2 '
        'AND "score" NOT BETWEEN :score_nbt1 AND :score_nbt2'
    )
    assert builder.parameters == {"age_bt1": 18, "age_bt2": 30, "score_nbt1": 1, "score_nbt2": 5}


def test_where_null_and_not_null(builder: StatementBuilder) -> None:
    builder.select("users").where_null("deleted_at").where_not_null("email")

    assert builder.render() == 'SELECT * FROM "users" WHERE "deleted_at" IS NULL AND "email" IS NOT NULL'
    assert builder.parameters == {}


def test_specialized_where_closes_or_group(builder: StatementBuilder) -> None:
    builder.select("users").where("a", "=", 1).or_where("b", "=", 2).where_null("c")

    assert builder.render() == 'SELECT * FROM "users" WHERE ("a" = :param0 OR "b" = :param1) AND "c" IS NULL'


def test_where_placeholder_counts_all_parameters(builder: StatementBuilder) -> None:
    builder.select("users").where_in("id", [1, 2]).where("name", "=", "x")

    assert ":param2" in builder.render()


@pytest.mark.parametrize("values", [[], ()])
def test_where_in_rejects_empty_values(builder: StatementBuilder, values: list) -> None:
    with pytest.raises(SQLBuilderError, match="non-empty"):
        builder.select("users").where_in("id", values)


@pytest.mark.parametrize("values", [[1], [1, 2, 3], []])
def test_where_between_requires_two_values(builder: StatementBuilder, values: list) -> None:
    with pytest.raises(SQLBuilderError, match="exactly two values"):
        builder.select("users").where_between("age", values)

    with pytest.raises(SQLBuilderError, match="exactly two values"):
        builder.select("users").where_not_between("age", values)


@pytest.mark.parametrize("operator", ["IN", "NOT IN", "BETWEEN", "IS", "IS NOT", SqlOperator.NOT_BETWEEN])
def test_where_rejects_operators_with_dedicated_methods(builder: StatementBuilder, operator: str) -> None:
    with pytest.raises(SQLBuilderError, match="not allowed"):
        builder.select("users").where("a", operator, 1)


def test_where_rejects_unknown_operator(builder: StatementBuilder) -> None:
    with pytest.raises(SQLBuilderError, match="Invalid SQL operator") as exc_info:
        builder.select("users").where("a", "~~", 1)

    assert exc_info.value.fragment == "~~"


def test_where_rejects_array_values(builder: StatementBuilder) -> None:
    builder.select("users")

    with pytest.raises(ParameterBindingError, match="array"):
        builder.where("id", "=", [1, 2])
    assert builder.parameters == {}


def test_where_requires_a_statement(builder: StatementBuilder) -> None:
    with pytest.raises(SQLBuilderError, match="no statement"):
        builder.where("a", "=", 1)


def test_where_on_insert_is_rejected(builder: StatementBuilder) -> None:
    with pytest.raises(SQLBuilderError, match="INSERT"):
        builder.insert("users", {"name": "x"}).where("id", "=", 1)


def test_render_without_statement_fails(builder: StatementBuilder) -> None:
    with pytest.raises(SQLBuilderError, match="No statement"):
        builder.render()


def test_select_resets_previous_statement(builder: StatementBuilder) -> None:
    builder.select("users").where("a", "=", 1).order_by("a").limit(5)
    builder.select("orders")

    assert builder.render() == 'SELECT * FROM "orders"'
    assert builder.parameters == {}
