"""Operator, join and ordering vocabularies."""

from enum import Enum
from typing import Final, Union

from sqlchain.exceptions import SQLBuilderError

__all__ = ("COMPARISON_OPERATORS", "JoinType", "OrderDirection", "SqlOperator", "normalize_and_validate_operator")


class SqlOperator(str, Enum):
    """Comparison operators understood by the builder."""

    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_THAN_OR_EQUALS = ">="
    LESS_THAN_OR_EQUALS = "<="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS = "IS"
    IS_NOT = "IS NOT"
    BETWEEN = "BETWEEN"
    NOT_BETWEEN = "NOT BETWEEN"

    def __str__(self) -> str:
        return self.value


class JoinType(str, Enum):
    INNER = "INNER JOIN"
    LEFT = "LEFT JOIN"
    RIGHT = "RIGHT JOIN"
    FULL = "FULL JOIN"

    def __str__(self) -> str:
        return self.value


class OrderDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    def __str__(self) -> str:
        return self.value


# IN, BETWEEN and the IS family have dedicated methods.
COMPARISON_OPERATORS: Final = frozenset(
    {
        SqlOperator.EQUALS,
        SqlOperator.NOT_EQUALS,
        SqlOperator.GREATER_THAN,
        SqlOperator.LESS_THAN,
        SqlOperator.GREATER_THAN_OR_EQUALS,
        SqlOperator.LESS_THAN_OR_EQUALS,
        SqlOperator.LIKE,
        SqlOperator.NOT_LIKE,
    }
)

_BY_TOKEN: Final = {
    **{member.value: member for member in SqlOperator},
    **{member.name: member for member in SqlOperator},
    "<>": SqlOperator.NOT_EQUALS,
}


def normalize_and_validate_operator(operator: Union[SqlOperator, str]) -> SqlOperator:
    """Resolve ``operator`` to a :class:`SqlOperator` usable by ``where``/``having``.

    Strings match operator values (``"like"``, ``">="``) or member names
    (``"EQUALS"``) case-insensitively.

    Raises:
        SQLBuilderError: Unknown operator, or one reserved for a specialized method.
    """
    if not isinstance(operator, SqlOperator):
        token = " ".join(str(operator).split()).upper()
        resolved = _BY_TOKEN.get(token)
        if resolved is None:
            msg = f"Invalid SQL operator: {operator}"
            raise SQLBuilderError(msg, fragment=str(operator))
        operator = resolved

    if operator not in COMPARISON_OPERATORS:
        msg = f"Operator {operator.value} not allowed in where/or_where/having. Use the specific method."
        raise SQLBuilderError(msg, fragment=operator.value)

    return operator
