from collections.abc import Mapping
from typing import Any, Optional, Union

__all__ = (
    "CacheError",
    "DatabaseConnectionError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "ParameterBindingError",
    "QueryError",
    "SQLBuilderError",
    "SQLChainError",
    "SerializationError",
    "TransactionError",
)


class SQLChainError(Exception):
    """Base exception class from which all sqlchain exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLChainError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLChainError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlchain[{install_package or package}]' to install sqlchain with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(SQLChainError):
    """Improper configuration error.

    Raised when settings are missing or inconsistent, before any backend is contacted.
    """


class SQLBuilderError(SQLChainError):
    """Builder misuse detected while assembling a statement.

    These never reach the backend. ``fragment`` holds the offending SQL fragment
    or column name when one is known.
    """

    fragment: Optional[str]

    def __init__(self, message: Optional[str] = None, fragment: Optional[str] = None) -> None:
        if message is None:
            message = "Issues building SQL statement."
        detail_message = message
        if fragment:
            detail_message = f"{message} (Fragment: {fragment})"
        super().__init__(detail=detail_message)
        self.fragment = fragment


class ParameterBindingError(SQLBuilderError):
    """A value cannot be bound as a scalar statement parameter."""

    parameter: Optional[str]

    def __init__(self, message: str, parameter: Optional[str] = None) -> None:
        super().__init__(message, fragment=parameter)
        self.parameter = parameter


class QueryError(SQLChainError):
    """The backend rejected or failed a statement.

    Carries the attempted SQL and parameter set for diagnostics.
    """

    sql: Optional[str]
    parameters: "Mapping[Union[str, int], Any]"

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        parameters: "Optional[Mapping[Union[str, int], Any]]" = None,
    ) -> None:
        super().__init__(detail=message)
        self.sql = sql
        self.parameters = dict(parameters or {})

    @property
    def detailed_message(self) -> str:
        """Message with the SQL text, bindings and chained cause appended."""
        message = self.detail
        if self.sql:
            message += f" | SQL: {self.sql}"
        if self.parameters:
            bindings = ", ".join(f"{key}={value!r}" for key, value in self.parameters.items())
            message += f" | Bindings: [{bindings}]"
        if self.__cause__ is not None:
            message += f" | Previous: {self.__cause__}"
        return message


class DatabaseConnectionError(QueryError):
    """Opening or re-opening the database connection failed."""


class TransactionError(QueryError):
    """Begin, commit, rollback or savepoint handling failed."""


class CacheError(SQLChainError):
    """A cache backend operation failed.

    Absorbed by the execution engine; only raised to callers that use a cache
    backend directly.
    """

    key: str

    def __init__(self, message: str, key: str = "") -> None:
        super().__init__(detail=message)
        self.key = key


class SerializationError(SQLChainError):
    """Encoding or decoding of an object failed."""
