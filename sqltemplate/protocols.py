"""Runtime-checkable protocols for sqltemplate collaborators."""

from typing import Any, Protocol, TypeVar, runtime_checkable

__all__ = ("ParameterSource", "RowMapper", "TemplateEngine")

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class ParameterSource(Protocol):
    """Name to value lookup used to bind ``:name`` placeholders."""

    def has_value(self, name: str) -> bool:
        """Return True if ``name`` is known to this source."""
        ...

    def get_value(self, name: str) -> Any:
        """Return the value bound to ``name``, or None if unknown."""
        ...


@runtime_checkable
class TemplateEngine(Protocol):
    """Resolves a template identifier into literal SQL."""

    def get(self, name: str, argument: Any) -> str:
        """Render template ``name`` for the binding argument.

        ``argument`` is a tuple of positional values, a mapping, or a parameter object.
        """
        ...


class RowMapper(Protocol[T_co]):
    """Maps one result row (column name to value) to a result object."""

    def __call__(self, row: "dict[str, Any]") -> T_co: ...
