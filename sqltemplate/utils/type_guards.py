"""Type guard functions for runtime type checking in sqltemplate.

These checks drive two decisions: whether a call argument is bound as a
simple value or as a bean, and which schema library a result type belongs to.
"""

import datetime
import ipaddress
import numbers
from collections.abc import Mapping, Sequence
from enum import Enum
from functools import lru_cache
from pathlib import PurePath
from typing import TYPE_CHECKING, Any
from uuid import UUID

import msgspec
from typing_extensions import is_typeddict

from sqltemplate._typing import ATTRS_INSTALLED, PYDANTIC_INSTALLED

if TYPE_CHECKING:
    from typing_extensions import TypeGuard

__all__ = (
    "is_attrs_schema",
    "is_dataclass",
    "is_dataclass_instance",
    "is_iterable_parameters",
    "is_mapping",
    "is_msgspec_struct",
    "is_named_tuple",
    "is_pydantic_model",
    "is_simple_value",
    "is_simple_value_type",
    "is_typed_dict",
)

_SIMPLE_VALUE_TYPES: "tuple[type, ...]" = (
    str,
    bytes,
    bytearray,
    memoryview,
    numbers.Number,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    Enum,
    UUID,
    PurePath,
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    type,
    type(None),
)


@lru_cache(maxsize=512)
def is_simple_value_type(value_type: type) -> bool:
    """Check if a type is a simple value type.

    Simple value types are scalars and well known wrappers (numbers, strings,
    dates and times, enums, UUIDs, paths) that are bound as a single
    positional value instead of being read as a bean.

    Args:
        value_type: Type to check.

    Returns:
        bool
    """
    return isinstance(value_type, type) and issubclass(value_type, _SIMPLE_VALUE_TYPES)


def is_simple_value(obj: Any) -> bool:
    """Check if a value is an instance of a simple value type.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return obj is None or is_simple_value_type(type(obj))


def is_iterable_parameters(params: Any) -> "TypeGuard[Sequence[Any]]":
    """Check if parameters are a sequence of values.

    Strings, bytes, dicts and NamedTuple instances are not: a NamedTuple is a
    value object whose fields bind by name.

    Args:
        params: The parameters to check

    Returns:
        True if the parameters are a sequence of values, False otherwise
    """
    return (
        isinstance(params, Sequence)
        and not isinstance(params, (str, bytes, bytearray, dict))
        and not is_named_tuple(type(params))
    )


def is_mapping(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    """Check if a value is a mapping.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, Mapping)


def is_dataclass_instance(obj: Any) -> bool:
    """Check if an object is a dataclass instance.

    Args:
        obj: An object to check.

    Returns:
        True if the object is a dataclass instance.
    """
    return not isinstance(obj, type) and hasattr(type(obj), "__dataclass_fields__")


def is_dataclass(obj: Any) -> bool:
    """Check if an object is a dataclass type or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if isinstance(obj, type) and hasattr(obj, "__dataclass_fields__"):
        return True
    return is_dataclass_instance(obj)


def is_pydantic_model(obj: Any) -> bool:
    """Check if a value is a pydantic model type or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if not PYDANTIC_INSTALLED:
        return False

    from pydantic import BaseModel

    if isinstance(obj, type):
        return issubclass(obj, BaseModel)
    return isinstance(obj, BaseModel)


def is_msgspec_struct(obj: Any) -> bool:
    """Check if a value is a msgspec struct type or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if isinstance(obj, type):
        return issubclass(obj, msgspec.Struct)
    return isinstance(obj, msgspec.Struct)


def is_attrs_schema(obj: Any) -> bool:
    """Check if a type is an attrs class.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if not ATTRS_INSTALLED or not isinstance(obj, type):
        return False

    import attrs

    return attrs.has(obj)


def is_typed_dict(obj: Any) -> bool:
    """Check if a type is a TypedDict.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, type) and is_typeddict(obj)


def is_named_tuple(obj: Any) -> bool:
    """Check if a type is a NamedTuple class.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, type) and issubclass(obj, tuple) and hasattr(obj, "_fields")
