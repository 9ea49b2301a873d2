"""sqltemplate: run SQL template files bound to Python objects."""

from sqltemplate import adapters, core, exceptions, template, utils
from sqltemplate.__metadata__ import __version__
from sqltemplate.base import JinjaSqlTemplate, MapQueryBuilder, SqlTemplate
from sqltemplate.config import SqlTemplateConfig
from sqltemplate.core.introspection import BeanRegistry, get_default_registry
from sqltemplate.core.parameters import BeanParameterSource, MapParameterSource, ParameterBuilder
from sqltemplate.driver import SqlExecutor
from sqltemplate.exceptions import (
    DataAccessError,
    ImproperConfigurationError,
    MissingParameterError,
    MultipleResultsFoundError,
    ParameterError,
    SQLFileNotFoundError,
    SQLFileParseError,
    SQLTemplateError,
    SQLTemplateIOError,
    TemplateRenderError,
)
from sqltemplate.loader import NamedStatement, SQLFileLoader
from sqltemplate.template import (
    JinjaStringTemplateEngine,
    JinjaTemplateEngine,
    NamedStatementTemplateEngine,
    PlainTextTemplateEngine,
    TextFileTemplateEngine,
)

__all__ = (
    "BeanParameterSource",
    "BeanRegistry",
    "DataAccessError",
    "ImproperConfigurationError",
    "JinjaSqlTemplate",
    "JinjaStringTemplateEngine",
    "JinjaTemplateEngine",
    "MapParameterSource",
    "MapQueryBuilder",
    "MissingParameterError",
    "MultipleResultsFoundError",
    "NamedStatement",
    "NamedStatementTemplateEngine",
    "ParameterBuilder",
    "ParameterError",
    "PlainTextTemplateEngine",
    "SQLFileLoader",
    "SQLFileNotFoundError",
    "SQLFileParseError",
    "SQLTemplateError",
    "SQLTemplateIOError",
    "SqlExecutor",
    "SqlTemplate",
    "SqlTemplateConfig",
    "TemplateRenderError",
    "TextFileTemplateEngine",
    "__version__",
    "adapters",
    "core",
    "exceptions",
    "get_default_registry",
    "template",
    "utils",
)
