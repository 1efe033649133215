"""Parameter classification, binding and placeholder conversion.

Statements are rendered with ``:name`` placeholders (or ``?`` for positional raw
SQL). Before execution each value is classified into a :class:`ParameterKind`,
coerced to the value the driver receives, and the SQL text is rewritten to the
driver's DB-API ``paramstyle``.
"""

import datetime
import io
import re
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Final, NamedTuple, Optional, Union

from sqlchain.exceptions import ParameterBindingError

__all__ = (
    "TIMESTAMP_FORMAT",
    "BoundParameter",
    "ParameterKind",
    "ParameterStyle",
    "bind_parameters",
    "capture_parameter",
    "classify_parameter",
    "convert_placeholders",
    "parameters_for",
    "placeholder_name",
    "placeholder_names",
)

TIMESTAMP_FORMAT: Final = "%Y-%m-%d %H:%M:%S"


class ParameterKind(str, Enum):
    """Closed set of bindable value kinds."""

    NULL = "null"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    FLOAT = "float"
    TEXT = "text"
    TIMESTAMP = "timestamp"
    BINARY_STREAM = "binary_stream"

    def __str__(self) -> str:
        return self.value


class ParameterStyle(str, Enum):
    """DB-API 2 ``paramstyle`` values."""

    QMARK = "qmark"
    NUMERIC = "numeric"
    NAMED = "named"
    FORMAT = "format"
    PYFORMAT = "pyformat"

    def __str__(self) -> str:
        return self.value


class BoundParameter(NamedTuple):
    """A parameter after classification: the driver-ready value and its kind."""

    name: Union[str, int]
    value: Any
    kind: ParameterKind


def _is_binary_stream(value: Any) -> bool:
    return isinstance(value, (io.RawIOBase, io.BufferedIOBase)) or (
        hasattr(value, "read") and hasattr(value, "readable") and not isinstance(value, io.TextIOBase)
    )


def classify_parameter(value: Any, name: "Union[str, int, None]" = None) -> ParameterKind:
    """Return the :class:`ParameterKind` for ``value``.

    Raises:
        ParameterBindingError: ``value`` is an array-like or mapping, which never binds as a scalar.
    """
    if value is None:
        return ParameterKind.NULL
    if isinstance(value, (list, tuple, set, frozenset, Mapping)):
        label = f" {name}" if name is not None else ""
        msg = f"Parameter{label} is an array ({type(value).__name__}); arrays cannot be bound as scalar values"
        raise ParameterBindingError(msg, parameter=str(name) if name is not None else None)
    if isinstance(value, bool):
        return ParameterKind.BOOLEAN
    if isinstance(value, int):
        return ParameterKind.INTEGER
    if isinstance(value, float):
        return ParameterKind.FLOAT
    if isinstance(value, (datetime.datetime, datetime.date)):
        return ParameterKind.TIMESTAMP
    if isinstance(value, (bytes, bytearray, memoryview)) or _is_binary_stream(value):
        return ParameterKind.BINARY_STREAM
    return ParameterKind.TEXT


def capture_parameter(value: Any, name: "Union[str, int, None]" = None) -> Any:
    """Validate ``value`` and return the form to store in a statement.

    Binary streams are read once into ``bytes``, so a statement can be bound
    repeatedly (count query, EXPLAIN, retry) with the same payload.

    Raises:
        ParameterBindingError: ``value`` is array-typed.
    """
    kind = classify_parameter(value, name)
    if kind is ParameterKind.BINARY_STREAM and not isinstance(value, (bytes, bytearray, memoryview)):
        return value.read()
    return value


def _coerce(value: Any, kind: ParameterKind) -> Any:
    if kind is ParameterKind.NULL:
        return None
    if kind is ParameterKind.BOOLEAN:
        return 1 if value else 0
    if kind in {ParameterKind.INTEGER, ParameterKind.FLOAT}:
        return value
    if kind is ParameterKind.TIMESTAMP:
        return value.strftime(TIMESTAMP_FORMAT)
    if kind is ParameterKind.BINARY_STREAM:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        return value.read()
    return str(value)


def bind_parameters(parameters: "Mapping[Union[str, int], Any]") -> "list[BoundParameter]":
    """Classify and coerce every parameter, preserving insertion order.

    Binary streams are read to their end here.

    Raises:
        ParameterBindingError: A value is array-typed.
    """
    bound: list[BoundParameter] = []
    for name, value in parameters.items():
        kind = classify_parameter(value, name)
        bound.append(BoundParameter(name, _coerce(value, kind), kind))
    return bound


_UNSAFE_NAME_CHARS: Final = re.compile(r"[^A-Za-z0-9_]")


def placeholder_name(base: str) -> str:
    """Turn a column-derived name into a valid placeholder name (``u.id`` -> ``u_id``).

    Non-ASCII characters become ``_`` and a leading digit gets a ``c_`` prefix
    (``2fa`` -> ``c_2fa``).
    """
    name = _UNSAFE_NAME_CHARS.sub("_", base)
    if not name or name[0].isdigit():
        name = f"c_{name}"
    return name


_PLACEHOLDER_REGEX: Final = re.compile(
    r"""
    (?P<squote>'(?:[^']|'')*') |
    (?P<dquote>"(?:[^"]|"")*") |
    (?P<backtick>`(?:[^`]|``)*`) |
    (?P<bracket>\[[^\]]*\]) |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*(?:[^*]|\*(?!/))*\*/) |
    (?P<pg_cast>::\w+) |
    (?P<named_colon>(?<![:\w]):(?P<colon_name>[A-Za-z_]\w*)) |
    (?P<qmark>\?) |
    (?P<percent>%)
    """,
    re.VERBOSE,
)


def convert_placeholders(
    sql: str, parameters: "Sequence[BoundParameter]", style: ParameterStyle
) -> "tuple[str, Union[dict[str, Any], list[Any]]]":
    """Rewrite ``:name``/``?`` placeholders to ``style`` and build the matching driver parameters.

    Quoted literals, quoted identifiers and comments are left untouched. For the
    ``format``/``pyformat`` styles literal ``%`` characters are doubled.

    Raises:
        ParameterBindingError: A placeholder in ``sql`` has no bound value.
    """
    by_name = {str(param.name).lstrip(":"): param.value for param in parameters if isinstance(param.name, str)}
    positional = [param.value for param in parameters if isinstance(param.name, int)]
    escape_percent = style in {ParameterStyle.FORMAT, ParameterStyle.PYFORMAT}

    named_output: dict[str, Any] = {}
    ordered_output: list[Any] = []
    position = 0

    def _replace(match: "re.Match[str]") -> str:
        nonlocal position
        kind = match.lastgroup
        text = match.group(0)
        if kind == "percent":
            return "%%" if escape_percent else text
        if kind in {"squote", "dquote", "backtick", "bracket", "line_comment", "block_comment", "pg_cast"}:
            return text.replace("%", "%%") if escape_percent else text

        if kind == "qmark":
            if position >= len(positional):
                msg = f"Positional placeholder #{position + 1} has no bound value"
                raise ParameterBindingError(msg, parameter=str(position))
            value = positional[position]
            name = f"p{position}"
            position += 1
        else:
            name = match.group("colon_name")
            if name not in by_name:
                msg = f"Placeholder :{name} has no bound value"
                raise ParameterBindingError(msg, parameter=name)
            value = by_name[name]

        if style is ParameterStyle.NAMED:
            named_output[name] = value
            return f":{name}"
        if style is ParameterStyle.PYFORMAT:
            named_output[name] = value
            return f"%({name})s"
        ordered_output.append(value)
        if style is ParameterStyle.NUMERIC:
            return f":{len(ordered_output)}"
        if style is ParameterStyle.FORMAT:
            return "%s"
        return "?"

    converted = _PLACEHOLDER_REGEX.sub(_replace, sql)
    if style in {ParameterStyle.NAMED, ParameterStyle.PYFORMAT}:
        return converted, named_output
    return converted, ordered_output


def placeholder_names(sql: str) -> "list[str]":
    """Names of the ``:name`` placeholders in ``sql``, in order of appearance."""
    return [
        match.group("colon_name") for match in _PLACEHOLDER_REGEX.finditer(sql) if match.lastgroup == "named_colon"
    ]


def parameters_for(sql: str, parameters: "Mapping[Union[str, int], Any]") -> "dict[Union[str, int], Any]":
    """Subset of ``parameters`` referenced by ``sql``; positional entries are kept as-is."""
    referenced = set(placeholder_names(sql))
    return {
        key: value
        for key, value in parameters.items()
        if isinstance(key, int) or str(key).lstrip(":") in referenced
    }
