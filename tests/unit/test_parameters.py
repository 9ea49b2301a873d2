"""Unit tests for parameter sources and call-argument classification."""

import datetime
import enum
import uuid
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, NamedTuple, Optional

import pytest

from sqltemplate.core.introspection import BeanRegistry
from sqltemplate.core.parameters import (
    BeanParameterSource,
    MapParameterSource,
    Named,
    ParameterBuilder,
    Positional,
)
from sqltemplate.exceptions import ImproperConfigurationError, ParameterError
from sqltemplate.protocols import ParameterSource
from tests.models import EmpCriteria

JST = datetime.timezone(datetime.timedelta(hours=9))
UTC = datetime.timezone.utc


class Color(enum.Enum):
    RED = "red"


class Event:
    """Accessor bean covering the common value types."""

    def __init__(self, **values: Any) -> None:
        self._values = values

    @property
    def id(self) -> Optional[int]:
        return self._values.get("id")

    @property
    def name(self) -> Optional[str]:
        return self._values.get("name")

    @property
    def amount(self) -> Optional[Decimal]:
        return self._values.get("amount")

    @property
    def day(self) -> Optional[datetime.date]:
        return self._values.get("day")

    @property
    def local_time(self) -> Optional[datetime.datetime]:
        return self._values.get("local_time")

    @property
    def occurred_at(self) -> Optional[datetime.datetime]:
        return self._values.get("occurred_at")


@dataclass
class Point:
    x: int
    y: int


class Partial:
    __slots__ = ("a", "b")

    def __init__(self) -> None:
        self.a = 1


class CriteriaTuple(NamedTuple):
    deptno: int
    job: str


class Unassigned:
    deptno: Optional[int]
    job: str

    def __init__(self, job: str) -> None:
        self.job = job


def test_accessor_bean_has_value() -> None:
    """Test has_value is true exactly for readable properties."""
    source = BeanParameterSource(EmpCriteria(30, "SALESMAN"))

    assert source.has_value("deptno")
    assert source.has_value("job")
    assert not source.has_value("_deptno")
    assert not source.has_value("ename")


def test_field_bean_has_value() -> None:
    """Test has_value is true exactly for public fields."""
    source = BeanParameterSource(Point(1, 2))

    assert source.has_value("x")
    assert source.has_value("y")
    assert not source.has_value("z")
    assert source.get_value("x") == 1


def test_unknown_name_is_not_an_error() -> None:
    """Test unknown names return None instead of raising."""
    source = BeanParameterSource(EmpCriteria(30, "SALESMAN"))

    assert not source.has_value("unknown")
    assert source.get_value("unknown") is None


def test_present_but_none_property() -> None:
    """Test a property returning None is known and yields None."""
    source = BeanParameterSource(Event(name=None))

    assert source.has_value("name")
    assert source.get_value("name") is None


def test_round_trip_of_property_values() -> None:
    """Test values other than aware date-times are returned unchanged."""
    values = {
        "id": 7,
        "name": "launch",
        "amount": Decimal("12.50"),
        "day": datetime.date(2024, 1, 1),
        "local_time": datetime.datetime(2024, 1, 1, 12, 30),
    }
    source = BeanParameterSource(Event(**values), JST)

    for name, value in values.items():
        assert source.get_value(name) == value


def test_aware_datetime_normalized_to_zone() -> None:
    """Test aware date-times are converted to the naive wall time of the reference zone."""
    source = BeanParameterSource(Event(occurred_at=datetime.datetime(2024, 1, 1, 0, 0, tzinfo=UTC)), JST)

    assert source.get_value("occurred_at") == datetime.datetime(2024, 1, 1, 9, 0)


def test_values_are_read_on_every_lookup() -> None:
    """Test values reflect the current state of the object."""
    point = Point(1, 2)
    source = BeanParameterSource(point)
    point.x = 10

    assert source.get_value("x") == 10


def test_names_fixed_at_construction() -> None:
    """Test attributes added after construction are not known."""

    class Criteria:
        pass

    criteria = Criteria()
    criteria.deptno = 10  # type: ignore[attr-defined]
    source = BeanParameterSource(criteria, registry=BeanRegistry())
    criteria.job = "CLERK"  # type: ignore[attr-defined]

    assert source.has_value("deptno")
    assert not source.has_value("job")


def test_properties_take_precedence_over_fields() -> None:
    """Test a name known as property and field is read through the property."""

    class Both:
        def __init__(self) -> None:
            self.label = "field"

    registry = BeanRegistry()
    registry.register(Both, properties={"label": lambda _: "property"}, fields=["label"])

    assert BeanParameterSource(Both(), registry=registry).get_value("label") == "property"


def test_unreadable_field_raises() -> None:
    """Test a declared but unreadable field raises ImproperConfigurationError."""
    source = BeanParameterSource(Partial())

    assert source.has_value("b")
    with pytest.raises(ImproperConfigurationError) as exc_info:
        source.get_value("b")
    assert isinstance(exc_info.value.__cause__, AttributeError)


def test_unassigned_annotation_is_unknown() -> None:
    """Test an annotated field the object never set is an unknown name."""
    source = BeanParameterSource(Unassigned("CLERK"), registry=BeanRegistry())

    assert not source.has_value("deptno")
    assert source.get_value("deptno") is None
    assert source.get_value("job") == "CLERK"
    assert source.parameter_names == ["job"]


def test_bean_parameter_names() -> None:
    """Test parameter_names lists properties then fields."""
    source = BeanParameterSource(EmpCriteria(10, "CLERK"))

    assert source.parameter_names == ["deptno", "job"]
    assert list(source) == ["deptno", "job"]


def test_bean_source_is_parameter_source() -> None:
    """Test both sources satisfy the ParameterSource protocol."""
    assert isinstance(BeanParameterSource(Point(1, 2)), ParameterSource)
    assert isinstance(MapParameterSource({}), ParameterSource)


def test_map_source() -> None:
    """Test MapParameterSource lookups and normalization."""
    source = MapParameterSource(
        {"deptno": 30, "missing": None, "at": datetime.datetime(2024, 1, 1, tzinfo=UTC)},
        JST,
    )

    assert source.has_value("deptno")
    assert source.has_value("missing")
    assert source.get_value("missing") is None
    assert not source.has_value("job")
    assert source.get_value("job") is None
    assert source.get_value("at") == datetime.datetime(2024, 1, 1, 9, 0)
    assert source.parameter_names == ["deptno", "missing", "at"]


@pytest.fixture
def builder() -> ParameterBuilder:
    return ParameterBuilder(JST, BeanRegistry())


def test_resolve_keyword_arguments(builder: ParameterBuilder) -> None:
    """Test keyword arguments bind by name."""
    bound = builder.resolve((), {"deptno": 30})

    assert isinstance(bound, Named)
    assert bound.argument == {"deptno": 30}


def test_resolve_mixed_arguments_rejected(builder: ParameterBuilder) -> None:
    """Test mixing positional and keyword arguments raises ParameterError."""
    with pytest.raises(ParameterError):
        builder.resolve((1,), {"deptno": 30})


def test_resolve_no_arguments(builder: ParameterBuilder) -> None:
    """Test no arguments bind positionally with no values."""
    bound = builder.resolve(())

    assert isinstance(bound, Positional)
    assert bound.argument == ()


def test_resolve_several_arguments(builder: ParameterBuilder) -> None:
    """Test several arguments bind positionally in order."""
    bound = builder.resolve((30, "SALESMAN"))

    assert isinstance(bound, Positional)
    assert bound.values == (30, "SALESMAN")


def test_resolve_parameter_source_used_as_is(builder: ParameterBuilder) -> None:
    """Test a single parameter source is not wrapped again."""
    source = MapParameterSource({"deptno": 10})

    bound = builder.resolve((source,))

    assert isinstance(bound, Named)
    assert bound.source is source


def test_resolve_mapping(builder: ParameterBuilder) -> None:
    """Test a single mapping binds by name."""
    values = {"deptno": 30, "job": "SALESMAN"}

    bound = builder.resolve((values,))

    assert isinstance(bound, Named)
    assert isinstance(bound.source, MapParameterSource)
    assert bound.argument is values


@pytest.mark.parametrize(
    "value",
    [
        7369,
        "SMITH",
        b"raw",
        3.5,
        Decimal("1.5"),
        True,
        datetime.date(2024, 1, 1),
        datetime.time(12, 0),
        Color.RED,
        uuid.UUID(int=1),
        Path("emp.sql"),
        None,
    ],
)
def test_resolve_simple_value(builder: ParameterBuilder, value: Any) -> None:
    """Test a single simple value binds positionally."""
    bound = builder.resolve((value,))

    assert isinstance(bound, Positional)
    assert bound.values == (value,)


def test_resolve_sequence_binds_elements(builder: ParameterBuilder) -> None:
    """Test a single list or tuple binds its elements positionally."""
    assert builder.resolve(([30, "SALESMAN"],)).argument == (30, "SALESMAN")
    assert builder.resolve(((30, "SALESMAN"),)).argument == (30, "SALESMAN")


def test_resolve_bean(builder: ParameterBuilder) -> None:
    """Test any other single object binds its readable names."""
    criteria = EmpCriteria(30, "SALESMAN")

    bound = builder.resolve((criteria,))

    assert isinstance(bound, Named)
    assert isinstance(bound.source, BeanParameterSource)
    assert bound.argument is criteria
    assert bound.source.get_value("job") == "SALESMAN"


def test_resolve_named_tuple_binds_fields(builder: ParameterBuilder) -> None:
    """Test a NamedTuple binds its fields by name, not by position."""
    criteria = CriteriaTuple(30, "SALESMAN")

    bound = builder.resolve((criteria,))

    assert isinstance(bound, Named)
    assert isinstance(bound.source, BeanParameterSource)
    assert bound.source.parameter_names == ["deptno", "job"]
    assert bound.source.get_value("deptno") == 30


def test_positional_values_are_normalized(builder: ParameterBuilder) -> None:
    """Test aware date-times bound by position are normalized too."""
    bound = builder.by_args(datetime.datetime(2024, 1, 1, tzinfo=UTC), 1)

    assert bound.values == (datetime.datetime(2024, 1, 1, 9, 0), 1)


def test_builder_resolves_zone_name() -> None:
    """Test the builder accepts "local" as zone."""
    assert ParameterBuilder("local").zone is None


def test_builder_mapper(builder: ParameterBuilder) -> None:
    """Test mapper() builds a row mapper for the result type."""
    mapper = builder.mapper(Point)

    assert mapper({"X": 1, "Y": 2}) == Point(1, 2)
