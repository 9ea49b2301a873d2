"""Unit tests for the exception hierarchy."""

import pytest

from sqltemplate.exceptions import (
    DataAccessError,
    ImproperConfigurationError,
    IncorrectColumnCountError,
    MissingParameterError,
    MultipleResultsFoundError,
    ParameterError,
    ParameterStyleMismatchError,
    RepositoryError,
    SQLFileNotFoundError,
    SQLFileParseError,
    SQLTemplateError,
    SQLTemplateIOError,
    TemplateRenderError,
)


def test_detail_from_first_argument() -> None:
    """Test the first argument becomes the detail."""
    error = SQLTemplateError("something failed")

    assert error.detail == "something failed"
    assert str(error) == "something failed"
    assert repr(error) == "SQLTemplateError - something failed"


def test_repr_without_detail() -> None:
    """Test repr without detail is the class name."""
    assert repr(SQLTemplateError()) == "SQLTemplateError"


def test_io_errors_are_os_errors() -> None:
    """Test template I/O errors can be caught as OSError."""
    cause = PermissionError("denied")
    error = SQLTemplateIOError("emp/selectAll.sql", cause)

    assert isinstance(error, OSError)
    assert error.cause is cause
    assert "emp/selectAll.sql" in str(error)
    assert issubclass(SQLFileNotFoundError, SQLTemplateIOError)


def test_file_not_found_detail() -> None:
    """Test the missing path is part of the message."""
    error = SQLFileNotFoundError("selectAll.sql", path="sql/emp")

    assert str(error) == "SQL template 'selectAll.sql' not found: sql/emp"
    assert error.path == "sql/emp"


def test_parse_error_detail() -> None:
    """Test parse errors carry the cause."""
    cause = ValueError("bad")
    error = SQLFileParseError("emp.sql", "/sql/emp.sql", cause)

    assert error.original_error is cause
    assert "bad" in str(error)


def test_render_error_detail() -> None:
    """Test render errors name the template."""
    assert "selectByArgs.sql" in str(TemplateRenderError("selectByArgs.sql", ValueError("x")))


def test_parameter_errors_include_sql() -> None:
    """Test parameter errors append the SQL."""
    error = MissingParameterError("No value for 'job'", "SELECT :job")

    assert isinstance(error, ParameterError)
    assert error.sql == "SELECT :job"
    assert str(error) == "No value for 'job'\nSQL: SELECT :job"


def test_style_mismatch_default_message() -> None:
    """Test the default mismatch message."""
    assert "cannot be mixed" in str(ParameterStyleMismatchError())


def test_data_access_errors() -> None:
    """Test execution errors."""
    error = IncorrectColumnCountError(1, 3)

    assert isinstance(error, DataAccessError)
    assert str(error) == "Incorrect column count: expected 1, actual 3"
    assert issubclass(MultipleResultsFoundError, RepositoryError)


@pytest.mark.parametrize(
    ("error_type", "base"),
    [(ImproperConfigurationError, ValueError), (SQLTemplateIOError, OSError)],
)
def test_builtin_bases(error_type: type, base: type) -> None:
    """Test errors usable with standard except clauses."""
    assert issubclass(error_type, base)
    assert issubclass(error_type, SQLTemplateError)

