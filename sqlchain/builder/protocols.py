from typing import Any, Protocol

from sqlchain.builder._state import StatementState
from sqlchain.dialects import Dialect

__all__ = ("BuilderProtocol",)


class BuilderProtocol(Protocol):
    _state: StatementState
    dialect: Dialect

    def quote(self, identifier: str) -> str: ...

    def add_parameter(self, name: str, value: Any) -> str: ...

    def reset(self) -> None: ...
