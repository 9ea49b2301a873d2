from typing import Any, Optional

__all__ = (
    "DataAccessError",
    "ImproperConfigurationError",
    "IncorrectColumnCountError",
    "MissingParameterError",
    "MultipleResultsFoundError",
    "ParameterError",
    "ParameterStyleMismatchError",
    "RepositoryError",
    "SQLFileNotFoundError",
    "SQLFileParseError",
    "SQLTemplateError",
    "SQLTemplateIOError",
    "SerializationError",
    "TemplateRenderError",
)


class SQLTemplateError(Exception):
    """Base exception class from which all sqltemplate exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLTemplateError``.

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


class ImproperConfigurationError(SQLTemplateError, ValueError):
    """Improper Configuration error.

    Raised for setup mistakes: unknown template engines or time zones, and
    declared fields that cannot be read from a parameter object.
    """


# -- Template Errors --
class SQLTemplateIOError(SQLTemplateError, OSError):
    """Reading a SQL template failed."""

    def __init__(self, name: str, cause: Optional[BaseException] = None) -> None:
        message = f"Failed to read SQL template {name!r}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(detail=message)
        self.name = name
        self.cause = cause


class SQLFileNotFoundError(SQLTemplateIOError):
    """A SQL template file or named statement does not exist."""

    def __init__(self, name: str, path: Optional[str] = None) -> None:
        super().__init__(name)
        self.path = path
        self.detail = f"SQL template {name!r} not found" + (f": {path}" if path else "")


class SQLFileParseError(SQLTemplateError):
    """A SQL file could not be parsed into named statements."""

    def __init__(self, name: str, path: str, original_error: BaseException) -> None:
        super().__init__(detail=f"Failed to parse SQL file {name!r} at {path}: {original_error}")
        self.name = name
        self.path = path
        self.original_error = original_error


class TemplateRenderError(SQLTemplateError):
    """A templated SQL file could not be rendered."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(detail=f"Failed to render SQL template {name!r}: {cause}")
        self.name = name
        self.cause = cause


# -- SQL Parameter Errors --
class ParameterError(SQLTemplateError):
    """Base class for parameter-related errors."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class MissingParameterError(ParameterError):
    """Raised when a placeholder in the SQL has no value in the parameter source."""


class ParameterStyleMismatchError(ParameterError):
    """Error when named and positional placeholders are mixed in one statement."""

    def __init__(self, message: Optional[str] = None, sql: Optional[str] = None) -> None:
        super().__init__(
            message or "Parameter style mismatch: named (:name) and positional (?) placeholders cannot be mixed.",
            sql,
        )


# -- Execution Errors --
class DataAccessError(SQLTemplateError):
    """The database driver failed to execute a statement.

    The driver exception is available as ``__cause__``.
    """

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class IncorrectColumnCountError(DataAccessError):
    """A single-column result was expected but the row has a different width."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Incorrect column count: expected {expected}, actual {actual}")
        self.expected = expected
        self.actual = actual


class SerializationError(SQLTemplateError):
    """Encoding or decoding of an object failed."""


class RepositoryError(SQLTemplateError):
    """Base repository exception type."""


class MultipleResultsFoundError(RepositoryError):
    """A single database result was required but more than one were found."""
