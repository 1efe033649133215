"""Identifier quoting."""

import re
from typing import Final

from sqlchain.dialects import Dialect

__all__ = ("IdentifierQuoter",)

_ALIAS_SPLIT: Final = re.compile(r"\s+as\s+", re.IGNORECASE)


class IdentifierQuoter:
    """Quotes table, column and alias names for one dialect.

    Results are memoized per instance, so each builder owns its own table.

    - ``users`` -> ```users```
    - ``users as u`` -> ```users` AS `u```
    - ``u.id`` -> ```u`.`id```
    - ``u.*`` -> ```u`.*``
    """

    __slots__ = ("_cache", "dialect")

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self._cache: dict[str, str] = {}

    def __call__(self, identifier: str) -> str:
        return self.quote(identifier)

    def quote(self, identifier: str) -> str:
        cached = self._cache.get(identifier)
        if cached is not None:
            return cached

        normalized = " ".join(identifier.split())
        parts = _ALIAS_SPLIT.split(normalized, maxsplit=1)
        if len(parts) == 2:  # noqa: PLR2004
            name, alias = parts
            quoted = f"{self.quote(name)} AS {self.quote(alias)}"
        else:
            quoted = ".".join(
                segment if segment == "*" else self.dialect.quote(segment) for segment in normalized.split(".")
            )

        self._cache[identifier] = quoted
        return quoted

    def clear(self) -> None:
        self._cache.clear()
