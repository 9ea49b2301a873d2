"""sqltemplate core: parameter binding and row mapping.

- introspection.py: readable names of parameter objects and the type metadata registry
- temporal.py: time zone normalization of date-time values
- parameters.py: parameter sources and call-argument classification
- named.py: ``:name`` placeholder scanning and expansion
- mapping.py: result row mappers
"""

from sqltemplate.core.introspection import (
    BeanMetadata,
    BeanRegistry,
    FieldDescriptor,
    FieldKind,
    get_default_registry,
    introspect,
)
from sqltemplate.core.mapping import create_mapper, to_value_type
from sqltemplate.core.named import expand_named_parameters, parse_sql_statement
from sqltemplate.core.parameters import (
    BeanParameterSource,
    BoundParameters,
    MapParameterSource,
    Named,
    ParameterBuilder,
    Positional,
)
from sqltemplate.core.temporal import convert_if_necessary, resolve_zone

__all__ = (
    "BeanMetadata",
    "BeanParameterSource",
    "BeanRegistry",
    "BoundParameters",
    "FieldDescriptor",
    "FieldKind",
    "MapParameterSource",
    "Named",
    "ParameterBuilder",
    "Positional",
    "convert_if_necessary",
    "create_mapper",
    "expand_named_parameters",
    "get_default_registry",
    "introspect",
    "parse_sql_statement",
    "resolve_zone",
    "to_value_type",
)
