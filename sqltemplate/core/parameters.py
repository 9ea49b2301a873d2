"""Parameter sources and call-argument classification.

Components:
- MapParameterSource: named values backed by a mapping
- BeanParameterSource: named values read from one parameter object
- Positional / Named: the two binding variants handed to the executor
- ParameterBuilder: turns call arguments into a binding variant
"""

import datetime
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Optional, Union

from sqltemplate.core.introspection import BeanRegistry, FieldDescriptor, get_default_registry
from sqltemplate.core.temporal import ZoneLike, convert_if_necessary, resolve_zone
from sqltemplate.exceptions import ImproperConfigurationError, ParameterError
from sqltemplate.protocols import ParameterSource
from sqltemplate.utils.type_guards import is_iterable_parameters, is_mapping, is_simple_value

if TYPE_CHECKING:
    from sqltemplate.protocols import RowMapper

__all__ = (
    "BeanParameterSource",
    "BoundParameters",
    "MapParameterSource",
    "Named",
    "ParameterBuilder",
    "Positional",
)


class MapParameterSource:
    """Parameter source over a string-keyed mapping."""

    __slots__ = ("values", "zone")

    def __init__(self, values: "Mapping[str, Any]", zone: "Optional[datetime.tzinfo]" = None) -> None:
        self.values = values
        self.zone = zone

    def has_value(self, name: str) -> bool:
        return name in self.values

    def get_value(self, name: str) -> Any:
        value = self.values.get(name)
        if value is None:
            return None
        return convert_if_necessary(value, self.zone)

    @property
    def parameter_names(self) -> "list[str]":
        return list(self.values)

    def __repr__(self) -> str:
        return f"MapParameterSource({list(self.values)!r})"


class BeanParameterSource:
    """Parameter source that reads named values from one parameter object.

    Readable names are accessor properties and public fields (see
    :mod:`sqltemplate.core.introspection`). The set of names is fixed when the
    source is created; values are read from the object on every lookup.

    Unknown names are not an error: ``has_value`` returns False and
    ``get_value`` returns None. Annotation-only fields the object has not
    assigned (no class default, no instance value) are unknown names too.
    """

    __slots__ = ("bean", "properties", "public_fields", "zone")

    def __init__(
        self,
        bean: Any,
        zone: "Optional[datetime.tzinfo]" = None,
        registry: "Optional[BeanRegistry]" = None,
    ) -> None:
        metadata = (registry or get_default_registry()).readable(bean)
        self.bean = bean
        self.properties: dict[str, FieldDescriptor] = metadata.properties
        self.public_fields: dict[str, FieldDescriptor] = metadata.public_fields
        self.zone = zone

    def has_value(self, name: str) -> bool:
        return name in self.properties or name in self.public_fields

    def get_value(self, name: str) -> Any:
        """Return the current value of ``name``.

        Accessor properties are consulted before public fields. Aware
        date-times are converted to the configured zone.

        Args:
            name: Parameter name.

        Raises:
            ImproperConfigurationError: If a declared field cannot be read.

        Returns:
            The value, or None when the name is unknown or the value is None.
        """
        value = None
        descriptor = self.properties.get(name)
        if descriptor is not None:
            value = descriptor.read(self.bean)
        else:
            descriptor = self.public_fields.get(name)
            if descriptor is not None:
                try:
                    value = descriptor.read(self.bean)
                except AttributeError as e:
                    msg = f"Field {name!r} of {type(self.bean).__qualname__} is declared but cannot be read"
                    raise ImproperConfigurationError(msg) from e

        if value is None:
            return None
        return convert_if_necessary(value, self.zone)

    @property
    def parameter_names(self) -> "list[str]":
        return [*self.properties, *(name for name in self.public_fields if name not in self.properties)]

    def __iter__(self) -> "Iterator[str]":
        return iter(self.parameter_names)

    def __repr__(self) -> str:
        return f"BeanParameterSource({type(self.bean).__qualname__}, names={self.parameter_names!r})"


class Positional:
    """Values bound in order to ``?`` placeholders."""

    __slots__ = ("values",)

    def __init__(self, values: "tuple[Any, ...]") -> None:
        self.values = values

    @property
    def argument(self) -> "tuple[Any, ...]":
        return self.values

    def __repr__(self) -> str:
        return f"Positional({self.values!r})"


class Named:
    """A parameter source bound to ``:name`` placeholders."""

    __slots__ = ("source",)

    def __init__(self, source: ParameterSource) -> None:
        self.source = source

    @property
    def argument(self) -> Any:
        """The object the source was built from, handed to template engines."""
        if isinstance(self.source, MapParameterSource):
            return self.source.values
        if isinstance(self.source, BeanParameterSource):
            return self.source.bean
        return self.source

    def __repr__(self) -> str:
        return f"Named({self.source!r})"


BoundParameters = Union[Positional, Named]


class ParameterBuilder:
    """Builds binding variants for SQL template calls.

    Args:
        zone: Reference zone for aware date-times (``None`` for the system local zone).
        registry: Type metadata registry used for parameter objects.
    """

    __slots__ = ("registry", "zone")

    def __init__(self, zone: ZoneLike = None, registry: "Optional[BeanRegistry]" = None) -> None:
        self.zone = resolve_zone(zone)
        self.registry = registry or get_default_registry()

    def by_args(self, *args: Any) -> Positional:
        return Positional(tuple(convert_if_necessary(arg, self.zone) for arg in args))

    def by_map(self, values: "Mapping[str, Any]") -> Named:
        return Named(MapParameterSource(values, self.zone))

    def by_bean(self, bean: Any) -> Named:
        return Named(BeanParameterSource(bean, self.zone, self.registry))

    def mapper(self, result_type: Any) -> "RowMapper[Any]":
        from sqltemplate.core.mapping import create_mapper

        return create_mapper(result_type, self.registry)

    def resolve(self, args: "tuple[Any, ...]", kwargs: "Optional[Mapping[str, Any]]" = None) -> BoundParameters:
        """Classify call arguments into a binding variant.

        - keyword arguments bind by name
        - zero or several positional arguments bind by position
        - a single parameter source is used as is
        - a single mapping binds by name
        - a single simple value binds by position
        - a single list or tuple binds its elements by position
        - any other single object binds its readable names

        Args:
            args: Positional call arguments.
            kwargs: Keyword call arguments.

        Raises:
            ParameterError: If positional and keyword arguments are mixed.

        Returns:
            The binding variant.
        """
        if kwargs:
            if args:
                msg = "Positional and keyword parameters cannot be mixed in one call"
                raise ParameterError(msg)
            return self.by_map(dict(kwargs))
        if len(args) != 1:
            return self.by_args(*args)

        argument = args[0]
        if isinstance(argument, ParameterSource):
            return Named(argument)
        if is_mapping(argument):
            return self.by_map(argument)
        if is_simple_value(argument):
            return self.by_args(argument)
        if is_iterable_parameters(argument):
            return self.by_args(*argument)
        return self.by_bean(argument)
