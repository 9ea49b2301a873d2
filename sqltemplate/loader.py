"""Named SQL statements read from ``.sql`` files.

A statement file holds any number of statements, each introduced by a
``-- name: <statement_name>`` line::

    -- name: select_by_id
    -- Comment lines right after the name are dropped.
    SELECT * FROM emp WHERE empno = :empno

    -- name: count-by-deptno
    SELECT COUNT(*) FROM emp WHERE deptno = :deptno

Names are looked up in normalized form (see :func:`normalize_statement_name`),
so ``count-by-deptno`` and ``count_by_deptno`` are the same statement.
"""

import hashlib
import re
import threading
from pathlib import Path
from typing import Optional, Union

from sqltemplate.exceptions import SQLFileNotFoundError, SQLFileParseError, SQLTemplateIOError
from sqltemplate.utils.logging import get_logger

__all__ = ("NamedStatement", "SQLFileLoader", "normalize_statement_name", "parse_statements")

logger = get_logger("loader")

_NAME_LINE = re.compile(r"^\s*--\s*name\s*:\s*(?P<name>[\w.-]+[^\w\s]*)\s*$", re.IGNORECASE)
_NOT_NAME_CHAR = re.compile(r"[^\w.-]")

# path -> (content checksum, statements); shared by every loader
_parsed_files: "dict[str, tuple[str, dict[str, NamedStatement]]]" = {}
_parsed_files_lock = threading.Lock()


def normalize_statement_name(name: str) -> str:
    """Drop marker characters (``$``, ``!`` ...) and turn hyphens into underscores.

    Dots are kept, they separate the namespace of statements loaded from subdirectories.
    """
    return _NOT_NAME_CHAR.sub("", name).replace("-", "_")


def _checksum(content: str) -> str:
    return hashlib.md5(content.encode(), usedforsecurity=False).hexdigest()


class NamedStatement:
    """One named statement and where it was defined."""

    __slots__ = ("name", "source", "sql", "start_line")

    def __init__(self, name: str, sql: str, source: Optional[str] = None, start_line: int = 0) -> None:
        self.name = name
        self.sql = sql
        self.source = source
        self.start_line = start_line

    @property
    def location(self) -> str:
        """``path:line`` of the name comment, or the name for directly added statements."""
        if self.source is None:
            return self.name
        return f"{self.source}:{self.start_line + 1}"

    def namespaced(self, namespace: Optional[str]) -> "NamedStatement":
        if not namespace:
            return self
        return NamedStatement(f"{namespace}.{self.name}", self.sql, self.source, self.start_line)

    def __repr__(self) -> str:
        return f"NamedStatement({self.name!r}, {self.location!r})"


def _statement_body(lines: "list[str]") -> str:
    for index, line in enumerate(lines):
        text = line.strip()
        if text and not text.startswith("--"):
            return "\n".join(lines[index:]).strip()
    return ""


def parse_statements(content: str, source: str) -> "dict[str, NamedStatement]":
    """Split ``content`` into named statements.

    Names without any SQL below them are skipped.

    Args:
        content: Text of a statement file.
        source: Path of the file, used in errors and on the statements.

    Raises:
        SQLFileParseError: If the file has no named statements or repeats a name.

    Returns:
        Statements by normalized name, in file order.
    """
    blocks: list[tuple[str, int, list[str]]] = []
    for line_number, line in enumerate(content.splitlines()):
        match = _NAME_LINE.match(line)
        if match is not None:
            blocks.append((match.group("name"), line_number, []))
        elif blocks:
            blocks[-1][2].append(line)

    if not blocks:
        raise SQLFileParseError(source, source, ValueError("No named SQL statements found (-- name: statement_name)"))

    statements: dict[str, NamedStatement] = {}
    for raw_name, line_number, lines in blocks:
        sql = _statement_body(lines)
        if not sql:
            continue
        name = normalize_statement_name(raw_name)
        if name in statements:
            raise SQLFileParseError(source, source, ValueError(f"Duplicate statement name: {raw_name}"))
        statements[name] = NamedStatement(name, sql, source, line_number)

    if not statements:
        raise SQLFileParseError(source, source, ValueError("No valid SQL statements found after parsing"))
    return statements


class SQLFileLoader:
    """Named statements from SQL files, looked up by the named template engine.

    Example:
        ```python
        loader = SQLFileLoader()
        loader.load_sql("queries/emp.sql", "queries/reports")

        sql = loader.get_sql("select_by_deptno")
        ```

    Args:
        encoding: Text encoding of the SQL files.
    """

    __slots__ = ("_lock", "_loaded", "_statements", "encoding")

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._statements: dict[str, NamedStatement] = {}
        self._loaded: set[str] = set()
        self._lock = threading.RLock()

    def load_sql(self, *paths: Union[str, Path]) -> None:
        """Load statements from files and directories.

        Directories are searched recursively for ``*.sql`` files. Statements
        of files in subdirectories get the dotted relative directory as
        namespace, e.g. ``reports.total_salary``. A file already loaded by
        this loader is skipped, and a missing path without a suffix is
        taken for an absent directory and skipped too.

        Raises:
            SQLFileNotFoundError: If a path with a file suffix does not exist.
            SQLFileParseError: If a file is malformed or a name is already taken.
        """
        with self._lock:
            before = len(self._statements)
            for path in map(Path, paths):
                if path.is_dir():
                    for file_path in sorted(path.rglob("*.sql")):
                        namespace = ".".join(file_path.relative_to(path).parent.parts)
                        self._load_file(file_path, namespace)
                elif path.exists():
                    self._load_file(path, None)
                elif path.suffix:
                    raise SQLFileNotFoundError(str(path))
            added = len(self._statements) - before
        logger.info("Loaded %d named statements from %d paths", added, len(paths))

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError as e:
            raise SQLFileNotFoundError(str(path)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise SQLTemplateIOError(str(path), e) from e

    def _parse(self, path: Path) -> "dict[str, NamedStatement]":
        source = str(path)
        content = self._read(path)
        checksum = _checksum(content)
        cached = _parsed_files.get(source)
        if cached is not None and cached[0] == checksum:
            logger.debug("Reusing statements of unchanged file %s", source)
            return cached[1]
        statements = parse_statements(content, source)
        with _parsed_files_lock:
            _parsed_files[source] = (checksum, statements)
        return statements

    def _load_file(self, path: Path, namespace: Optional[str]) -> None:
        source = str(path)
        if source in self._loaded:
            return
        statements = [statement.namespaced(namespace) for statement in self._parse(path).values()]
        for statement in statements:
            self._check_free(statement.name, source)
        self._statements.update((statement.name, statement) for statement in statements)
        self._loaded.add(source)

    def _check_free(self, name: str, source: str) -> None:
        existing = self._statements.get(name)
        if existing is not None:
            msg = f"Statement name {name!r} already exists in {existing.location}"
            raise SQLFileParseError(name, source, ValueError(msg))

    def add_named_sql(self, name: str, sql: str) -> None:
        """Add a statement without a file.

        Raises:
            SQLFileParseError: If the name is already taken.
        """
        name = normalize_statement_name(name)
        with self._lock:
            self._check_free(name, "<directly added>")
            self._statements[name] = NamedStatement(name, sql.strip())

    def get_statement(self, name: str) -> NamedStatement:
        """Return the statement called ``name``.

        Raises:
            SQLFileNotFoundError: If no statement has that name.
        """
        statement = self._statements.get(normalize_statement_name(name))
        if statement is None:
            available = ", ".join(sorted(self._statements)) or "none"
            raise SQLFileNotFoundError(name, path=f"Statement '{name}' not found. Available statements: {available}")
        return statement

    def get_sql(self, name: str) -> str:
        return self.get_statement(name).sql

    def has_query(self, name: str) -> bool:
        return normalize_statement_name(name) in self._statements

    def list_queries(self) -> "list[str]":
        """Names of all statements, sorted."""
        return sorted(self._statements)

    def clear_cache(self) -> None:
        """Forget the statements of this loader and the parsed files shared by all loaders."""
        with self._lock:
            self._statements.clear()
            self._loaded.clear()
        with _parsed_files_lock:
            _parsed_files.clear()
