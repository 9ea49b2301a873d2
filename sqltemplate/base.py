"""SQL template dispatcher.

:class:`SqlTemplate` is the entry point of the library: it resolves a
template name into SQL through a template engine, binds the call arguments
and runs the statement through an executor.

Example:
    ```python
    from sqltemplate import SqlTemplate
    from sqltemplate.adapters.sqlite import SqliteConfig
    from sqltemplate.template import TextFileTemplateEngine

    config = SqliteConfig(connection_config={"database": "scott.db"})
    with config.provide_executor() as executor:
        template = SqlTemplate(executor, TextFileTemplateEngine("sql"))
        emp = template.for_object("emp/selectById.sql", Emp, 7369)
        clerks = template.for_list("emp/selectByJob.sql", Emp, job="CLERK")
    ```
"""

from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar, overload

from sqltemplate.core.parameters import BoundParameters, ParameterBuilder
from sqltemplate.exceptions import MultipleResultsFoundError, SQLTemplateError, SQLTemplateIOError
from sqltemplate.template.jinja import JinjaTemplateEngine
from sqltemplate.template.text import TextFileTemplateEngine
from sqltemplate.utils.logging import get_logger

if TYPE_CHECKING:
    from sqltemplate.core.introspection import BeanRegistry
    from sqltemplate.core.temporal import ZoneLike
    from sqltemplate.driver import SqlExecutor
    from sqltemplate.protocols import TemplateEngine

__all__ = ("JinjaSqlTemplate", "MapQueryBuilder", "SqlTemplate")

logger = get_logger("template")

T = TypeVar("T")


class SqlTemplate:
    """Runs named SQL templates with bound arguments.

    Call arguments are classified once per call (see
    :meth:`ParameterBuilder.resolve <sqltemplate.core.parameters.ParameterBuilder.resolve>`):
    keyword arguments and a single mapping or object bind by name, anything
    else binds by position. The template name and result type are
    positional-only, so every keyword is a value (``name=`` included).

    Args:
        executor: Executes the resolved SQL.
        template_engine: Resolves template names; a text file engine over the
            current directory by default.
        zone: Reference zone for aware date-time parameters.
        parameter_builder: Builds bindings and row mappers; replaces ``zone`` and ``registry``.
        registry: Type metadata registry for parameter and result objects.
    """

    __slots__ = ("executor", "parameter_builder", "template_engine")

    def __init__(
        self,
        executor: "SqlExecutor",
        template_engine: "Optional[TemplateEngine]" = None,
        *,
        zone: "ZoneLike" = None,
        parameter_builder: "Optional[ParameterBuilder]" = None,
        registry: "Optional[BeanRegistry]" = None,
    ) -> None:
        self.executor = executor
        self.parameter_builder = parameter_builder or ParameterBuilder(zone, registry)
        self.template_engine = template_engine or self.default_template_engine()

    def default_template_engine(self) -> "TemplateEngine":
        return TextFileTemplateEngine()

    def get(self, name: str, argument: Any) -> str:
        """Resolve template ``name`` for the binding argument.

        Args:
            name: Template name.
            argument: Positional values, a mapping or a parameter object.

        Raises:
            SQLTemplateIOError: If the template engine fails with an I/O error.

        Returns:
            The SQL text.
        """
        try:
            return self.template_engine.get(name, argument)
        except SQLTemplateError:
            raise
        except OSError as e:
            raise SQLTemplateIOError(name, e) from e

    def _query(self, name: str, result_type: Any, parameters: BoundParameters) -> "list[Any]":
        sql = self.get(name, parameters.argument)
        logger.debug("Querying %s as %s", name, getattr(result_type, "__qualname__", result_type))
        return self.executor.query(sql, parameters, self.parameter_builder.mapper(result_type))

    def _single(self, name: str, results: "list[T]") -> "Optional[T]":
        if not results:
            return None
        if len(results) > 1:
            msg = f"Expected at most one row from {name!r}, got {len(results)}"
            raise MultipleResultsFoundError(msg)
        return results[0]

    @overload
    def for_list(self, name: str, result_type: "type[T]", /, *args: Any, **kwargs: Any) -> "list[T]": ...
    @overload
    def for_list(
        self, name: str, result_type: None = None, /, *args: Any, **kwargs: Any
    ) -> "list[dict[str, Any]]": ...
    def for_list(self, name: str, result_type: Any = None, /, *args: Any, **kwargs: Any) -> "list[Any]":
        """Run a query and map every row to ``result_type``.

        Args:
            name: Template name.
            result_type: Row type; ``None`` or ``dict`` for plain dicts.
            *args: Positional values, or a single mapping or parameter object.
            **kwargs: Named values.

        Returns:
            The mapped rows, possibly empty.
        """
        return self._query(name, result_type, self.parameter_builder.resolve(args, kwargs))

    @overload
    def for_object(self, name: str, result_type: "type[T]", /, *args: Any, **kwargs: Any) -> "Optional[T]": ...
    @overload
    def for_object(
        self, name: str, result_type: None = None, /, *args: Any, **kwargs: Any
    ) -> "Optional[dict[str, Any]]": ...
    def for_object(self, name: str, result_type: Any = None, /, *args: Any, **kwargs: Any) -> Any:
        """Run a query expected to return at most one row.

        Raises:
            MultipleResultsFoundError: If more than one row is returned.

        Returns:
            The mapped row, or None when the query returns no rows.
        """
        return self._single(name, self.for_list(name, result_type, *args, **kwargs))

    def update(self, name: str, /, *args: Any, **kwargs: Any) -> int:
        """Run a data-modifying statement.

        Returns:
            The number of affected rows.
        """
        parameters = self.parameter_builder.resolve(args, kwargs)
        sql = self.get(name, parameters.argument)
        logger.debug("Updating with %s", name)
        return self.executor.update(sql, parameters)

    def query(self, name: str, result_type: "Optional[type[T]]" = None) -> "MapQueryBuilder[T]":
        """Start a query whose named values are added one by one.

        Example:
            ```python
            emps = template.query("selectByArgs.sql", Emp).add("deptno", 30).add("job", "SALESMAN").for_list()
            ```
        """
        return MapQueryBuilder(self, name, result_type)


class MapQueryBuilder(Generic[T]):
    """Collects named values for one query."""

    __slots__ = ("name", "params", "result_type", "template")

    def __init__(self, template: SqlTemplate, name: str, result_type: "Optional[type[T]]" = None) -> None:
        self.template = template
        self.name = name
        self.result_type = result_type
        self.params: dict[str, Any] = {}

    def add(self, key: str, value: Any) -> "MapQueryBuilder[T]":
        self.params[key] = value
        return self

    def for_list(self) -> "list[T]":
        parameters = self.template.parameter_builder.by_map(self.params)
        return self.template._query(self.name, self.result_type, parameters)  # noqa: SLF001

    def for_object(self) -> "Optional[T]":
        return self.template._single(self.name, self.for_list())  # noqa: SLF001


class JinjaSqlTemplate(SqlTemplate):
    """SqlTemplate rendering Jinja2 template files from the current directory by default."""

    __slots__ = ()

    def default_template_engine(self) -> "TemplateEngine":
        return JinjaTemplateEngine(registry=self.parameter_builder.registry)
