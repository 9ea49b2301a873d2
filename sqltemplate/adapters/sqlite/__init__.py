"""SQLite adapter for sqltemplate."""

from sqltemplate.adapters.sqlite.config import SqliteConfig, SqliteConnectionParams
from sqltemplate.adapters.sqlite.driver import (
    SqliteConnection,
    SqliteCursor,
    SqliteExecutor,
    sqlite_type_coercion_map,
)

__all__ = (
    "SqliteConfig",
    "SqliteConnection",
    "SqliteConnectionParams",
    "SqliteCursor",
    "SqliteExecutor",
    "sqlite_type_coercion_map",
)
