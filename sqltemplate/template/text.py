"""Template engines returning SQL text without rendering."""

from pathlib import Path
from typing import Any, Union

from sqltemplate.exceptions import SQLFileNotFoundError, SQLTemplateIOError
from sqltemplate.template.base import DEFAULT_CACHE_SIZE, LRUCache, PathLike, normalize_search_path
from sqltemplate.utils.logging import get_logger

__all__ = ("PlainTextTemplateEngine", "TextFileTemplateEngine")

logger = get_logger("template.text")


class PlainTextTemplateEngine:
    """The template name is the SQL itself."""

    __slots__ = ()

    def get(self, name: str, argument: Any) -> str:
        return name


class TextFileTemplateEngine:
    """Reads SQL from files below one or more directories.

    File contents are cached by resolved path; the argument is ignored.

    Args:
        search_path: Directory or directories searched in order.
        encoding: Text encoding of the files.
        cache_size: Maximum number of cached files.
    """

    __slots__ = ("_cache", "encoding", "search_path")

    def __init__(
        self,
        search_path: "Union[PathLike, list[PathLike], tuple[PathLike, ...]]" = ".",
        encoding: str = "utf-8",
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        self.search_path = normalize_search_path(search_path)
        self.encoding = encoding
        self._cache: LRUCache[Path, str] = LRUCache(cache_size)

    def find(self, name: str) -> Path:
        """Locate the file of template ``name``.

        Args:
            name: Path of the template relative to a search directory.

        Raises:
            SQLFileNotFoundError: If no search directory contains the file.

        Returns:
            The path of the first match.
        """
        for directory in self.search_path:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        searched = ", ".join(str(d) for d in self.search_path)
        raise SQLFileNotFoundError(name, path=f"searched {searched}")

    def get(self, name: str, argument: Any) -> str:
        path = self.find(name)
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        try:
            text = path.read_text(encoding=self.encoding)
        except FileNotFoundError as e:
            raise SQLFileNotFoundError(name, path=str(path)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise SQLTemplateIOError(name, e) from e
        logger.debug("Loaded SQL template %s from %s", name, path)
        return self._cache.put(path, text)

    def clear_cache(self) -> None:
        self._cache.clear()
