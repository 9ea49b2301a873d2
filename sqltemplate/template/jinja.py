"""Jinja2 template engines.

SQL templates are rendered with a context built from the call argument and
must still emit ``:name`` or ``?`` placeholders for the values; rendering
only decides the shape of the statement. A typical conditional template::

    SELECT * FROM emp
    {% where %}
    {% if deptno is defined %}
      AND deptno = :deptno
    {% endif %}
    {% if job is defined %}
      AND job = :job
    {% endif %}
    {% endwhere %}
    ORDER BY empno

Compiled templates of :class:`JinjaStringTemplateEngine` are cached in an
LRU dict keyed by the source hash, so repeated calls skip the parse phase.
"""

import hashlib
import re
from typing import TYPE_CHECKING, Any, Optional, Union

from jinja2 import (
    BaseLoader,
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    Template,
    TemplateError,
    TemplateNotFound,
    nodes,
)
from jinja2.ext import Extension

from sqltemplate.exceptions import SQLFileNotFoundError, SQLTemplateIOError, TemplateRenderError
from sqltemplate.template.base import DEFAULT_CACHE_SIZE, LRUCache, PathLike, build_context, normalize_search_path
from sqltemplate.utils.logging import get_logger

if TYPE_CHECKING:
    from jinja2.parser import Parser

    from sqltemplate.core.introspection import BeanRegistry

__all__ = (
    "JinjaStringTemplateEngine",
    "JinjaTemplateEngine",
    "WhereExtension",
    "create_environment",
    "render_template",
)

logger = get_logger("template.jinja")

_LEADING_CONJUNCTION = re.compile(r"^\s*(?:AND|OR)\s+", re.IGNORECASE)


class WhereExtension(Extension):
    """``{% where %} ... {% endwhere %}`` block.

    Renders the block, strips a leading AND/OR and prefixes ``WHERE`` if
    anything is left.
    Conditions go on lines of their own so that block tags trim cleanly.
    """

    tags = {"where"}  # noqa: RUF012

    def parse(self, parser: "Parser") -> nodes.Node:
        lineno = next(parser.stream).lineno
        body = parser.parse_statements(("name:endwhere",), drop_needle=True)
        return nodes.CallBlock(self.call_method("_render_where"), [], [], body).set_lineno(lineno)

    def _render_where(self, caller: Any) -> str:
        inner = _LEADING_CONJUNCTION.sub("", caller().strip()).strip()
        return f"WHERE {inner}\n" if inner else ""


def create_environment(loader: "Optional[BaseLoader]" = None, **options: Any) -> Environment:
    """Create a Jinja2 environment for SQL.

    Autoescaping is off, block tags trim their surrounding whitespace and
    :class:`WhereExtension` is enabled. ``options`` override the defaults.

    Args:
        loader: Template loader.
        **options: Extra :class:`jinja2.Environment` arguments.

    Returns:
        The environment.
    """
    settings: dict[str, Any] = {"autoescape": False, "trim_blocks": True, "lstrip_blocks": True}
    settings.update(options)
    extensions = list(settings.pop("extensions", ()))
    if WhereExtension not in extensions:
        extensions.append(WhereExtension)
    return Environment(loader=loader, extensions=extensions, **settings)


def render_template(template: Template, name: str, argument: Any, registry: "Optional[BeanRegistry]" = None) -> str:
    """Render ``template`` with the context of ``argument``.

    Raises:
        TemplateRenderError: If rendering fails.
    """
    try:
        return template.render(build_context(argument, registry)).strip()
    except TemplateError as e:
        raise TemplateRenderError(name, e) from e


class JinjaTemplateEngine:
    """Renders Jinja2 SQL template files.

    Templates are looked up in the directories of ``search_path`` and then,
    when ``package`` is given, in that package's ``sql`` directory. Compiled
    templates are cached by Jinja2 itself and reloaded when the file changes.

    Args:
        search_path: Directory or directories of template files.
        package: Importable package holding a ``sql`` template directory.
        encoding: Text encoding of the files.
        environment: Preconfigured environment; replaces the default one.
        registry: Registry used to describe parameter objects.
        cache_size: Number of compiled templates Jinja2 keeps.
        **options: Extra :class:`jinja2.Environment` arguments.
    """

    __slots__ = ("environment", "registry")

    def __init__(
        self,
        search_path: "Union[PathLike, list[PathLike], tuple[PathLike, ...]]" = ".",
        package: "Optional[str]" = None,
        encoding: str = "utf-8",
        environment: "Optional[Environment]" = None,
        registry: "Optional[BeanRegistry]" = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
        **options: Any,
    ) -> None:
        if environment is None:
            loaders: list[BaseLoader] = [FileSystemLoader(normalize_search_path(search_path), encoding=encoding)]
            if package is not None:
                loaders.append(PackageLoader(package, "sql", encoding=encoding))
            options.setdefault("cache_size", cache_size)
            environment = create_environment(ChoiceLoader(loaders), **options)
        self.environment = environment
        self.registry = registry

    def get(self, name: str, argument: Any) -> str:
        try:
            template = self.environment.get_template(name)
        except TemplateNotFound as e:
            raise SQLFileNotFoundError(name) from e
        except TemplateError as e:
            raise TemplateRenderError(name, e) from e
        except (OSError, UnicodeDecodeError) as e:
            raise SQLTemplateIOError(name, e) from e
        sql = render_template(template, name, argument, self.registry)
        logger.debug("Rendered SQL template %s", name)
        return sql


class JinjaStringTemplateEngine:
    """The template name is a Jinja2 template source.

    Args:
        environment: Preconfigured environment; replaces the default one.
        registry: Registry used to describe parameter objects.
        cache_size: Maximum number of cached compiled templates.
        **options: Extra :class:`jinja2.Environment` arguments.
    """

    __slots__ = ("_cache", "environment", "registry")

    def __init__(
        self,
        environment: "Optional[Environment]" = None,
        registry: "Optional[BeanRegistry]" = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
        **options: Any,
    ) -> None:
        self.environment = environment or create_environment(**options)
        self.registry = registry
        self._cache: LRUCache[str, Template] = LRUCache(cache_size)

    def compile(self, source: str, name: "Optional[str]" = None) -> Template:
        """Return the compiled template of ``source`` from cache or compile and cache it.

        Raises:
            TemplateRenderError: If the source has a syntax error.
        """
        key = hashlib.md5(source.encode(), usedforsecurity=False).hexdigest()
        template = self._cache.get(key)
        if template is not None:
            return template
        try:
            template = self.environment.from_string(source)
        except TemplateError as e:
            raise TemplateRenderError(name or source, e) from e
        return self._cache.put(key, template)

    def render(self, source: str, argument: Any, name: "Optional[str]" = None) -> str:
        return render_template(self.compile(source, name), name or source, argument, self.registry)

    def get(self, name: str, argument: Any) -> str:
        return self.render(name, argument)

    def clear_cache(self) -> None:
        self._cache.clear()

