import datetime
import sqlite3
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqltemplate.driver import CursorManager, SqlExecutor
from sqltemplate.utils.serializers import to_json

if TYPE_CHECKING:
    from sqltemplate.driver import TypeCoercionMap

__all__ = ("SqliteConnection", "SqliteCursor", "SqliteExecutor", "sqlite_type_coercion_map")

SqliteConnection = sqlite3.Connection

sqlite_type_coercion_map: "TypeCoercionMap" = {
    bool: int,
    datetime.datetime: lambda v: v.isoformat(sep=" "),
    datetime.date: lambda v: v.isoformat(),
    datetime.time: lambda v: v.isoformat(),
    Decimal: str,
    dict: to_json,
    list: to_json,
    tuple: lambda v: to_json(list(v)),
}


class SqliteCursor(CursorManager):
    """Context manager for SQLite cursor management."""

    __slots__ = ()

    def __enter__(self) -> "sqlite3.Cursor":
        self.cursor = self.connection.cursor()
        return self.cursor


class SqliteExecutor(SqlExecutor):
    """Executor for :mod:`sqlite3` connections.

    Booleans are bound as integers, dates and times as ISO text, decimals as
    strings and dicts, lists and tuples as JSON.
    """

    __slots__ = ()

    def __init__(
        self,
        connection: "SqliteConnection",
        *,
        type_coercion_map: "Optional[TypeCoercionMap]" = None,
        error_types: "Optional[tuple[type[BaseException], ...]]" = None,
    ) -> None:
        super().__init__(
            connection,
            paramstyle="qmark",
            type_coercion_map=type_coercion_map if type_coercion_map is not None else sqlite_type_coercion_map,
            error_types=error_types or (sqlite3.Error,),
        )

    def with_cursor(self, connection: Any) -> SqliteCursor:
        return SqliteCursor(connection)
