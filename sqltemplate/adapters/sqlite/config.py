"""SQLite connection configuration."""

import sqlite3
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional, TypedDict, Union

from typing_extensions import NotRequired

from sqltemplate.adapters.sqlite.driver import SqliteConnection, SqliteExecutor
from sqltemplate.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

    from sqltemplate.driver import TypeCoercionMap

__all__ = ("SqliteConfig", "SqliteConnectionParams")

logger = get_logger("adapters.sqlite")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


class SqliteConfig:
    """Creates :mod:`sqlite3` connections and executors.

    Args:
        connection_config: Arguments for :func:`sqlite3.connect`. The database
            defaults to ``":memory:"``.
        type_coercion_map: Parameter converters for executors; the sqlite
            defaults when omitted.
    """

    __slots__ = ("connection_config", "type_coercion_map")

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[SqliteConnectionParams, dict[str, Any]]]" = None,
        type_coercion_map: "Optional[TypeCoercionMap]" = None,
    ) -> None:
        config: dict[str, Any] = dict(connection_config or {})
        config.setdefault("database", ":memory:")
        database_path = str(config["database"])
        if database_path.startswith("file:") and not config.get("uri"):
            logger.debug("Database URI detected (%s) but uri=True not set. Auto-enabling URI mode.", database_path)
            config["uri"] = True
        self.connection_config = config
        self.type_coercion_map = type_coercion_map

    def create_connection(self) -> SqliteConnection:
        """Open a new connection with rows returned as tuples."""
        return sqlite3.connect(**{k: v for k, v in self.connection_config.items() if v is not None})

    @contextmanager
    def provide_connection(self) -> "Generator[SqliteConnection, None, None]":
        """Provide a connection that is closed on exit.

        Yields:
            SqliteConnection: An open connection
        """
        connection = self.create_connection()
        try:
            yield connection
        finally:
            connection.close()

    @contextmanager
    def provide_executor(self) -> "Generator[SqliteExecutor, None, None]":
        """Provide an executor over a new connection.

        The transaction is committed when the block exits normally and rolled
        back when it raises.

        Yields:
            SqliteExecutor: An executor bound to the connection
        """
        with self.provide_connection() as connection:
            executor = SqliteExecutor(connection, type_coercion_map=self.type_coercion_map)
            try:
                yield executor
            except Exception:
                executor.rollback()
                raise
            executor.commit()
