"""Unit tests for time zone normalization of parameter values."""

import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from sqltemplate.core.temporal import LOCAL_ZONE, convert_if_necessary, resolve_zone
from sqltemplate.exceptions import ImproperConfigurationError

JST = datetime.timezone(datetime.timedelta(hours=9), "JST")


@pytest.fixture
def tokyo() -> ZoneInfo:
    try:
        return ZoneInfo("Asia/Tokyo")
    except ZoneInfoNotFoundError:
        pytest.skip("IANA time zone database not available")


def test_resolve_zone_local() -> None:
    """Test None and "local" resolve to the system local zone."""
    assert resolve_zone(None) is None
    assert resolve_zone(LOCAL_ZONE) is None
    assert resolve_zone("LOCAL") is None


def test_resolve_zone_tzinfo_passthrough() -> None:
    """Test a tzinfo is used as is."""
    assert resolve_zone(JST) is JST


def test_resolve_zone_name(tokyo: ZoneInfo) -> None:
    """Test IANA zone names resolve to ZoneInfo."""
    assert resolve_zone("Asia/Tokyo") == tokyo


def test_resolve_zone_unknown() -> None:
    """Test unknown zone names raise ImproperConfigurationError."""
    with pytest.raises(ImproperConfigurationError, match="Unknown time zone"):
        resolve_zone("Not/AZone")


def test_aware_datetime_converted_to_reference_zone() -> None:
    """Test aware date-times become the naive wall time of the reference zone."""
    value = datetime.datetime(2024, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)

    assert convert_if_necessary(value, JST) == datetime.datetime(2024, 1, 1, 9, 0)


def test_aware_datetime_with_named_zone(tokyo: ZoneInfo) -> None:
    """Test conversion into an IANA zone."""
    value = datetime.datetime(2024, 6, 30, 15, 30, tzinfo=datetime.timezone.utc)

    converted = convert_if_necessary(value, tokyo)

    assert converted == datetime.datetime(2024, 7, 1, 0, 30)
    assert converted.tzinfo is None


def test_aware_datetime_local_zone() -> None:
    """Test None converts into the system local zone."""
    value = datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)

    assert convert_if_necessary(value) == value.astimezone().replace(tzinfo=None)


@pytest.mark.parametrize(
    "value",
    [
        datetime.datetime(2024, 1, 1, 12, 0),
        datetime.date(2024, 1, 1),
        datetime.time(12, 0, tzinfo=datetime.timezone.utc),
        "2024-01-01T00:00:00+00:00",
        42,
        None,
    ],
)
def test_other_values_unchanged(value: object) -> None:
    """Test naive date-times, dates, times and non-temporal values pass through."""
    assert convert_if_necessary(value, JST) is value
