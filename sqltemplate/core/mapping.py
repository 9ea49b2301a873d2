"""Row mapping for query results.

A row mapper is created once per call and applied to every row, each row
given as a ``dict`` of column name to value. Supported result types:

- ``None``, ``dict`` or ``Mapping``: the row as a dict
- ``tuple``: the row values
- simple value types: the single column value, converted
- dataclasses, msgspec Structs, pydantic models, attrs classes,
  NamedTuples and TypedDicts
- other classes: instantiated without arguments, matching attributes set

Columns are matched to field names ignoring case and underscores, so
``EMP_NO``, ``empno`` and ``emp_no`` all fill a field named ``emp_no``.
"""

import datetime
from collections.abc import Callable, Mapping
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path, PurePath
from types import UnionType
from typing import (
    TYPE_CHECKING,
    Any,
    Final,
    Generic,
    Optional,
    TypeVar,
    Union,
    cast,
    get_args,
    get_origin,
    get_type_hints,
)
from uuid import UUID

import msgspec

from sqltemplate.exceptions import IncorrectColumnCountError, SQLTemplateError
from sqltemplate.utils.logging import get_logger
from sqltemplate.utils.serializers import from_json
from sqltemplate.utils.type_guards import (
    is_attrs_schema,
    is_dataclass,
    is_msgspec_struct,
    is_named_tuple,
    is_pydantic_model,
    is_simple_value_type,
    is_typed_dict,
)

if TYPE_CHECKING:
    from sqltemplate.core.introspection import BeanRegistry
    from sqltemplate.protocols import RowMapper

__all__ = (
    "BeanRowMapper",
    "DictRowMapper",
    "SchemaRowMapper",
    "SingleColumnRowMapper",
    "TupleRowMapper",
    "create_mapper",
    "normalize_column_name",
    "to_value_type",
)

logger = get_logger("core.mapping")

T = TypeVar("T")
ValueT = TypeVar("ValueT")

_BOOL_TRUE_VALUES: Final[frozenset[str]] = frozenset({"true", "1", "yes", "y", "t", "on"})


def normalize_column_name(name: str) -> str:
    """Lower-case ``name`` and drop underscores."""
    return name.replace("_", "").lower()


# =============================================================================
# Scalar Type Conversion
# =============================================================================


def _convert_to_int(value: Any) -> int:
    if isinstance(value, (bool, int, float, Decimal)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            try:
                return int(float(value))
            except ValueError:
                pass
    msg = f"Cannot convert {type(value).__name__} to int"
    raise TypeError(msg)


def _convert_to_float(value: Any) -> float:
    if isinstance(value, (bool, int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to float"
    raise TypeError(msg)


def _convert_to_bool(value: Any) -> bool:
    if isinstance(value, (bool, int, float)):
        return bool(value)
    if isinstance(value, str):
        return value.lower() in _BOOL_TRUE_VALUES
    msg = f"Cannot convert {type(value).__name__} to bool"
    raise TypeError(msg)


def _convert_to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value)
        except ValueError:
            pass
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)
    msg = f"Cannot convert {type(value).__name__} to datetime"
    raise TypeError(msg)


def _convert_to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.date.fromisoformat(value)
        except ValueError:
            try:
                return datetime.datetime.fromisoformat(value).date()
            except ValueError:
                pass
    msg = f"Cannot convert {type(value).__name__} to date"
    raise TypeError(msg)


def _convert_to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, str):
        try:
            return datetime.time.fromisoformat(value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to time"
    raise TypeError(msg)


def _convert_to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            pass
    msg = f"Cannot convert {type(value).__name__} to Decimal"
    raise TypeError(msg)


def _convert_to_uuid(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            pass
    if isinstance(value, bytes):
        try:
            return UUID(bytes=value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to UUID"
    raise TypeError(msg)


def _convert_to_path(value: Any) -> Path:
    if isinstance(value, (str, PurePath)):
        return Path(value)
    msg = f"Cannot convert {type(value).__name__} to Path"
    raise TypeError(msg)


def _convert_to_dict(value: Any) -> "dict[str, Any]":
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        parsed = from_json(value)
        if isinstance(parsed, dict):
            return parsed
    msg = f"Cannot convert {type(value).__name__} to dict"
    raise TypeError(msg)


def _convert_to_list(value: Any) -> "list[Any]":
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        parsed = from_json(value)
        if isinstance(parsed, list):
            return parsed
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    msg = f"Cannot convert {type(value).__name__} to list"
    raise TypeError(msg)


_SCALAR_CONVERTERS: "Final[dict[type, Callable[[Any], Any]]]" = {
    int: _convert_to_int,
    float: _convert_to_float,
    str: str,
    bool: _convert_to_bool,
    datetime.datetime: _convert_to_datetime,
    datetime.date: _convert_to_date,
    datetime.time: _convert_to_time,
    Decimal: _convert_to_decimal,
    UUID: _convert_to_uuid,
    Path: _convert_to_path,
    dict: _convert_to_dict,
    list: _convert_to_list,
}


def to_value_type(value: Any, value_type: "type[ValueT]") -> "ValueT":
    """Convert a database value to the specified Python type.

    ``None`` is returned unchanged. Values already of the exact type are
    returned as is.

    Args:
        value: The value to convert.
        value_type: The target Python type.

    Raises:
        TypeError: If the value cannot be converted to the specified type.

    Returns:
        The converted value.

    Examples:
        >>> to_value_type("42", int)
        42
        >>> to_value_type("1981-02-20", datetime.date)
        datetime.date(1981, 2, 20)
    """
    if value is None:
        return cast("ValueT", None)
    # bool is an int and datetime is a date: require the exact type for these
    if value_type in (int, bool, datetime.date, datetime.time):
        if type(value) is value_type:
            return cast("ValueT", value)
    elif isinstance(value, value_type):
        return value

    converter = _SCALAR_CONVERTERS.get(value_type)
    if converter is not None:
        return cast("ValueT", converter(value))

    try:
        return value_type(value)  # type: ignore[call-arg]
    except (TypeError, ValueError) as e:
        msg = f"Cannot convert {type(value).__name__} to {value_type.__name__}"
        raise TypeError(msg) from e


# =============================================================================
# Row Mappers
# =============================================================================


@lru_cache(maxsize=256)
def _field_types(schema_type: type) -> "dict[str, Any]":
    try:
        return get_type_hints(schema_type)
    except Exception:  # noqa: BLE001
        return dict(getattr(schema_type, "__annotations__", {}))


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, UnionType):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def _convert_field(value: Any, annotation: Any) -> Any:
    annotation = _unwrap_optional(annotation)
    if value is None or not isinstance(annotation, type) or annotation not in _SCALAR_CONVERTERS:
        return value
    return to_value_type(value, annotation)


def _build_column_map(columns: "tuple[str, ...]", field_names: "list[str]") -> "dict[str, str]":
    by_normalized = {normalize_column_name(name): name for name in field_names}
    column_map: dict[str, str] = {}
    for column in columns:
        field_name = by_normalized.get(normalize_column_name(column))
        if field_name is not None:
            column_map[column] = field_name
    return column_map


class DictRowMapper:
    """Returns rows as plain dicts."""

    __slots__ = ()

    def __call__(self, row: "dict[str, Any]") -> "dict[str, Any]":
        return dict(row)


class TupleRowMapper:
    """Returns row values as a tuple."""

    __slots__ = ()

    def __call__(self, row: "dict[str, Any]") -> "tuple[Any, ...]":
        return tuple(row.values())


class SingleColumnRowMapper(Generic[T]):
    """Returns the only column of a row converted to a simple value type."""

    __slots__ = ("value_type",)

    def __init__(self, value_type: "type[T]") -> None:
        self.value_type = value_type

    def __call__(self, row: "dict[str, Any]") -> T:
        if len(row) != 1:
            raise IncorrectColumnCountError(1, len(row))
        return to_value_type(next(iter(row.values())), self.value_type)


class SchemaRowMapper(Generic[T]):
    """Builds schema model instances (dataclass, msgspec, pydantic, attrs, ...) from rows.

    The column to field lookup is computed from the first row and reused.
    """

    __slots__ = ("_column_map", "_columns", "_field_names", "_field_types", "_kind", "schema_type")

    def __init__(self, schema_type: "type[T]", kind: str, field_names: "list[str]") -> None:
        self.schema_type = schema_type
        self._kind = kind
        self._field_names = field_names
        self._field_types = _field_types(schema_type) if kind in {"dataclass", "attrs", "named_tuple"} else {}
        self._columns: Optional[tuple[str, ...]] = None
        self._column_map: dict[str, str] = {}

    def _fields_for(self, row: "dict[str, Any]") -> "dict[str, Any]":
        columns = tuple(row)
        if columns != self._columns:
            self._columns = columns
            self._column_map = _build_column_map(columns, self._field_names)
        return {field_name: row[column] for column, field_name in self._column_map.items()}

    def __call__(self, row: "dict[str, Any]") -> T:
        data = self._fields_for(row)
        if self._kind == "typed_dict":
            return cast("T", data)
        if self._kind == "msgspec":
            return msgspec.convert(data, type=self.schema_type, strict=False)
        if self._kind == "pydantic":
            return self.schema_type.model_validate(data)  # type: ignore[attr-defined]
        converted = {name: _convert_field(value, self._field_types.get(name)) for name, value in data.items()}
        return self.schema_type(**converted)


class BeanRowMapper(Generic[T]):
    """Instantiates a plain class and sets the attributes matching the columns."""

    __slots__ = ("_column_map", "_columns", "_field_types", "registry", "result_type")

    def __init__(self, result_type: "type[T]", registry: "BeanRegistry") -> None:
        self.result_type = result_type
        self.registry = registry
        self._field_types = _field_types(result_type)
        self._columns: Optional[tuple[str, ...]] = None
        self._column_map: dict[str, str] = {}

    def __call__(self, row: "dict[str, Any]") -> T:
        instance = self.result_type()
        columns = tuple(row)
        if columns != self._columns:
            self._columns = columns
            self._column_map = _build_column_map(columns, self.registry.describe(instance).names)
        for column, field_name in self._column_map.items():
            setattr(instance, field_name, _convert_field(row[column], self._field_types.get(field_name)))
        return instance


def _schema_kind(schema_type: type) -> "tuple[str, list[str]] | None":
    if is_typed_dict(schema_type):
        return "typed_dict", list(_field_types(schema_type))
    if is_dataclass(schema_type):
        import dataclasses

        return "dataclass", [f.name for f in dataclasses.fields(schema_type) if f.init]
    if is_msgspec_struct(schema_type):
        return "msgspec", list(schema_type.__struct_fields__)  # type: ignore[attr-defined]
    if is_pydantic_model(schema_type):
        return "pydantic", list(schema_type.model_fields)  # type: ignore[attr-defined]
    if is_attrs_schema(schema_type):
        import attrs

        return "attrs", [a.alias for a in attrs.fields(schema_type) if a.init]
    if is_named_tuple(schema_type):
        return "named_tuple", list(schema_type._fields)  # type: ignore[attr-defined]
    return None


def create_mapper(result_type: Any = None, registry: "Optional[BeanRegistry]" = None) -> "RowMapper[Any]":
    """Create the row mapper for ``result_type``.

    Args:
        result_type: Target type of each row.
        registry: Registry used to find the attributes of plain classes.

    Raises:
        SQLTemplateError: If ``result_type`` is not a type.

    Returns:
        A callable mapping one row dict to one result.
    """
    if result_type is None or result_type is dict or result_type is Mapping:
        return DictRowMapper()
    if not isinstance(result_type, type):
        msg = f"Result type must be a class, got {result_type!r}"
        raise SQLTemplateError(msg)
    if result_type is tuple:
        return TupleRowMapper()
    if is_simple_value_type(result_type) or result_type in (list, dict):
        return SingleColumnRowMapper(result_type)

    schema = _schema_kind(result_type)
    if schema is not None:
        kind, field_names = schema
        logger.debug("Mapping rows to %s %s", kind, result_type.__qualname__)
        return SchemaRowMapper(result_type, kind, field_names)

    from sqltemplate.core.introspection import get_default_registry

    return BeanRowMapper(result_type, registry or get_default_registry())
