"""Statement execution over DB-API 2 connections.

:class:`SqlExecutor` turns a SQL string and its bound parameters into a
driver call: named parameters are expanded to positional driver markers,
values are coerced for the driver and result rows are handed to a row
mapper as ``dict`` objects.
"""

import time
from collections.abc import Callable, Generator, Mapping
from contextlib import contextmanager
from typing import Any, Optional

from sqltemplate.core.named import convert_positional_placeholders, expand_named_parameters, parse_sql_statement
from sqltemplate.core.parameters import BoundParameters, Named
from sqltemplate.exceptions import DataAccessError, ImproperConfigurationError, ParameterStyleMismatchError
from sqltemplate.protocols import RowMapper
from sqltemplate.utils.logging import get_logger

__all__ = ("PARAMSTYLE_PLACEHOLDERS", "CursorManager", "SqlExecutor", "TypeCoercionMap")

logger = get_logger("driver")

PARAMSTYLE_PLACEHOLDERS: "Mapping[str, str]" = {"qmark": "?", "format": "%s"}

TypeCoercionMap = Mapping[type, Callable[[Any], Any]]


class CursorManager:
    """Context manager for DB-API cursor management."""

    __slots__ = ("connection", "cursor")

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.cursor: Optional[Any] = None

    def __enter__(self) -> Any:
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            self.cursor.close()


class SqlExecutor:
    """Executes statements on one DB-API 2 connection.

    Args:
        connection: An open DB-API 2 connection.
        paramstyle: Driver parameter style, ``"qmark"`` or ``"format"``.
        type_coercion_map: Converters applied to parameter values by type.
        error_types: Driver exception types wrapped into :class:`DataAccessError`.

    Raises:
        ImproperConfigurationError: If the parameter style is not supported.
    """

    __slots__ = ("connection", "error_types", "paramstyle", "placeholder", "type_coercion_map")

    def __init__(
        self,
        connection: Any,
        *,
        paramstyle: str = "qmark",
        type_coercion_map: "Optional[TypeCoercionMap]" = None,
        error_types: "Optional[tuple[type[BaseException], ...]]" = None,
    ) -> None:
        placeholder = PARAMSTYLE_PLACEHOLDERS.get(paramstyle)
        if placeholder is None:
            msg = f"Unsupported parameter style {paramstyle!r}; expected one of {sorted(PARAMSTYLE_PLACEHOLDERS)}"
            raise ImproperConfigurationError(msg)
        self.connection = connection
        self.paramstyle = paramstyle
        self.placeholder = placeholder
        self.type_coercion_map = dict(type_coercion_map or {})
        self.error_types = error_types or (Exception,)

    def with_cursor(self, connection: Any) -> Any:
        return CursorManager(connection)

    @contextmanager
    def handle_database_exceptions(self, sql: str) -> "Generator[None, None, None]":
        """Wrap driver exceptions into :class:`DataAccessError`."""
        try:
            yield
        except self.error_types as e:
            msg = f"Database error: {e}"
            raise DataAccessError(msg, sql) from e

    def coerce(self, value: Any) -> Any:
        """Apply the converter registered for the value's type or nearest base class."""
        if value is None or not self.type_coercion_map:
            return value
        for klass in type(value).__mro__:
            converter = self.type_coercion_map.get(klass)
            if converter is not None:
                return converter(value)
        return value

    def prepare(self, sql: str, parameters: BoundParameters) -> "tuple[str, list[Any]]":
        """Produce the driver SQL and parameter list.

        Args:
            sql: SQL text with ``:name`` or ``?`` placeholders.
            parameters: Bound call parameters.

        Raises:
            ParameterStyleMismatchError: If positional values are bound to named placeholders.

        Returns:
            Driver SQL and coerced positional values.
        """
        has_named = parse_sql_statement(sql).has_named_parameters
        if isinstance(parameters, Named):
            if has_named:
                driver_sql, values = expand_named_parameters(sql, parameters.source, self.placeholder)
            else:
                driver_sql, values = convert_positional_placeholders(sql, self.placeholder), []
        else:
            if has_named:
                msg = "Positional values cannot be bound to named (:name) placeholders"
                raise ParameterStyleMismatchError(msg, sql)
            driver_sql = convert_positional_placeholders(sql, self.placeholder)
            values = list(parameters.values)
        return driver_sql, [self.coerce(value) for value in values]

    def _execute(self, cursor: Any, sql: str, values: "list[Any]") -> None:
        start_time = time.perf_counter()
        with self.handle_database_exceptions(sql):
            cursor.execute(sql, values)
        logger.debug(
            "Executed statement with %d parameters in %.3fms: %s",
            len(values),
            (time.perf_counter() - start_time) * 1000,
            sql,
        )

    def query(self, sql: str, parameters: BoundParameters, row_mapper: "RowMapper[Any]") -> "list[Any]":
        """Execute a query and map every row.

        Args:
            sql: SQL text.
            parameters: Bound call parameters.
            row_mapper: Callable turning one row dict into a result object.

        Raises:
            DataAccessError: If the driver fails.

        Returns:
            The mapped rows in result order.
        """
        driver_sql, values = self.prepare(sql, parameters)
        with self.with_cursor(self.connection) as cursor:
            self._execute(cursor, driver_sql, values)
            with self.handle_database_exceptions(driver_sql):
                fetched = cursor.fetchall()
            column_names = [column[0] for column in cursor.description or []]
        return [row_mapper(dict(zip(column_names, row))) for row in fetched]

    def update(self, sql: str, parameters: BoundParameters) -> int:
        """Execute a data-modifying statement.

        Returns:
            The number of affected rows, 0 when the driver does not report it.
        """
        driver_sql, values = self.prepare(sql, parameters)
        with self.with_cursor(self.connection) as cursor:
            self._execute(cursor, driver_sql, values)
            rowcount = cursor.rowcount
        return rowcount if rowcount and rowcount > 0 else 0

    def execute_script(self, script: str) -> None:
        """Run a multi-statement script without parameters."""
        with self.handle_database_exceptions(script):
            executescript = getattr(self.connection, "executescript", None)
            if executescript is not None:
                executescript(script)
                return
            with self.with_cursor(self.connection) as cursor:
                for statement in (s.strip() for s in script.split(";")):
                    if statement:
                        cursor.execute(statement)

    def commit(self) -> None:
        """Commit the current transaction."""
        with self.handle_database_exceptions("COMMIT"):
            self.connection.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        with self.handle_database_exceptions("ROLLBACK"):
            self.connection.rollback()
