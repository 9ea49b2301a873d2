from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from sqltemplate.adapters.sqlite import SqliteConfig, SqliteExecutor
from sqltemplate.core.introspection import BeanRegistry

here = Path(__file__).parent
fixtures_path = here / "fixtures"
sql_path = fixtures_path / "sql"
jinja_path = fixtures_path / "jinja"


@pytest.fixture
def sql_dir() -> Path:
    return sql_path


@pytest.fixture
def jinja_dir() -> Path:
    return jinja_path


@pytest.fixture
def registry() -> BeanRegistry:
    return BeanRegistry()


@pytest.fixture
def sqlite_executor() -> Generator[SqliteExecutor, None, None]:
    """Executor over an in-memory database loaded with the SCOTT schema."""
    config = SqliteConfig()
    with config.provide_connection() as connection:
        executor = SqliteExecutor(connection)
        executor.execute_script((sql_path / "schema.sql").read_text(encoding="utf-8"))
        yield executor
