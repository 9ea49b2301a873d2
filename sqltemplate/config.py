"""Configuration of template engines and SQL templates."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Optional, Union

from sqltemplate.base import SqlTemplate
from sqltemplate.core.parameters import ParameterBuilder
from sqltemplate.core.temporal import ZoneLike, resolve_zone
from sqltemplate.exceptions import ImproperConfigurationError
from sqltemplate.loader import SQLFileLoader
from sqltemplate.template import (
    JinjaStringTemplateEngine,
    JinjaTemplateEngine,
    NamedStatementTemplateEngine,
    PlainTextTemplateEngine,
    TextFileTemplateEngine,
)
from sqltemplate.template.base import DEFAULT_CACHE_SIZE

if TYPE_CHECKING:
    from sqltemplate.core.introspection import BeanRegistry
    from sqltemplate.driver import SqlExecutor
    from sqltemplate.protocols import TemplateEngine

__all__ = ("TEMPLATE_ENGINES", "SqlTemplateConfig")

TEMPLATE_ENGINES: Final = ("text", "jinja", "jinja_string", "plain", "named")


@dataclass
class SqlTemplateConfig:
    """Settings for building a :class:`~sqltemplate.base.SqlTemplate`.

    Example:
        ```python
        config = SqlTemplateConfig(template_engine="jinja", search_path="sql", zone="Asia/Tokyo")
        template = config.create_sql_template(executor)
        ```
    """

    template_engine: str = "text"
    """One of ``text``, ``jinja``, ``jinja_string``, ``plain`` or ``named``."""

    search_path: "Union[str, Path, list[Union[str, Path]]]" = "."
    """Template directories of the ``text`` and ``jinja`` engines."""

    package: "Optional[str]" = None
    """Package with a ``sql`` template directory, for the ``jinja`` engine."""

    encoding: str = "utf-8"
    """Text encoding of template files."""

    zone: ZoneLike = None
    """Reference zone for aware date-time parameters; ``None`` is the system local zone."""

    cache_size: int = DEFAULT_CACHE_SIZE
    """Maximum number of cached templates."""

    named_sql_paths: "list[Union[str, Path]]" = field(default_factory=list)
    """Files and directories of ``-- name:`` statements, for the ``named`` engine."""

    render_named: bool = False
    """Render named statements as Jinja2 templates."""

    jinja_options: "dict[str, Any]" = field(default_factory=dict)
    """Extra :class:`jinja2.Environment` arguments."""

    def __post_init__(self) -> None:
        if self.template_engine not in TEMPLATE_ENGINES:
            msg = f"Unknown template engine {self.template_engine!r}; expected one of {', '.join(TEMPLATE_ENGINES)}"
            raise ImproperConfigurationError(msg)
        resolve_zone(self.zone)

    def create_template_engine(self, registry: "Optional[BeanRegistry]" = None) -> "TemplateEngine":
        """Create the configured template engine.

        Args:
            registry: Registry the Jinja2 engines use for parameter objects.

        Returns:
            The template engine.
        """
        if self.template_engine == "plain":
            return PlainTextTemplateEngine()
        if self.template_engine == "text":
            return TextFileTemplateEngine(self.search_path, self.encoding, self.cache_size)
        if self.template_engine == "jinja":
            return JinjaTemplateEngine(
                self.search_path,
                self.package,
                self.encoding,
                registry=registry,
                cache_size=self.cache_size,
                **self.jinja_options,
            )
        jinja = JinjaStringTemplateEngine(registry=registry, cache_size=self.cache_size, **self.jinja_options)
        if self.template_engine == "jinja_string":
            return jinja
        loader = SQLFileLoader(encoding=self.encoding)
        loader.load_sql(*self.named_sql_paths)
        return NamedStatementTemplateEngine(
            loader, render=self.render_named, jinja=jinja if self.render_named else None
        )

    def create_parameter_builder(self, registry: "Optional[BeanRegistry]" = None) -> ParameterBuilder:
        return ParameterBuilder(self.zone, registry)

    def create_sql_template(self, executor: "SqlExecutor", registry: "Optional[BeanRegistry]" = None) -> SqlTemplate:
        """Create a SqlTemplate over ``executor`` with the configured engine and zone."""
        parameter_builder = self.create_parameter_builder(registry)
        return SqlTemplate(
            executor,
            self.create_template_engine(parameter_builder.registry),
            parameter_builder=parameter_builder,
        )
