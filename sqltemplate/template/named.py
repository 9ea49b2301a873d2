"""Template engine over ``-- name:`` statements of a :class:`~sqltemplate.loader.SQLFileLoader`."""

from typing import TYPE_CHECKING, Any, Optional

from sqltemplate.template.jinja import JinjaStringTemplateEngine

if TYPE_CHECKING:
    from sqltemplate.loader import SQLFileLoader

__all__ = ("NamedStatementTemplateEngine",)


class NamedStatementTemplateEngine:
    """Resolves template names to named statements.

    Args:
        loader: Loader holding the statements.
        render: Render statements as Jinja2 templates before returning them.
        jinja: String engine used for rendering; created on demand.
    """

    __slots__ = ("jinja", "loader", "render")

    def __init__(
        self, loader: "SQLFileLoader", render: bool = False, jinja: "Optional[JinjaStringTemplateEngine]" = None
    ) -> None:
        self.loader = loader
        self.render = render
        self.jinja = jinja or (JinjaStringTemplateEngine() if render else None)

    def get(self, name: str, argument: Any) -> str:
        statement = self.loader.get_statement(name)
        if self.jinja is None:
            return statement.sql
        return self.jinja.render(statement.sql, argument, f"{statement.name} ({statement.location})")
