"""Template engines resolving a template name into SQL text."""

from sqltemplate.template.base import build_context
from sqltemplate.template.jinja import JinjaStringTemplateEngine, JinjaTemplateEngine, WhereExtension
from sqltemplate.template.named import NamedStatementTemplateEngine
from sqltemplate.template.text import PlainTextTemplateEngine, TextFileTemplateEngine

__all__ = (
    "JinjaStringTemplateEngine",
    "JinjaTemplateEngine",
    "NamedStatementTemplateEngine",
    "PlainTextTemplateEngine",
    "TextFileTemplateEngine",
    "WhereExtension",
    "build_context",
)
