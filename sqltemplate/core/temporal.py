"""Time zone normalization of bound parameter values.

Database drivers bind naive date-times. Aware values are converted to a
reference zone first and passed on as naive wall-clock times of that zone.
"""

import datetime
from typing import Any, Final, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqltemplate.exceptions import ImproperConfigurationError

__all__ = ("LOCAL_ZONE", "ZoneLike", "convert_if_necessary", "resolve_zone")

LOCAL_ZONE: Final = "local"

ZoneLike = Union[datetime.tzinfo, str, None]


def resolve_zone(zone: ZoneLike) -> "Optional[datetime.tzinfo]":
    """Resolve a configured reference zone.

    Args:
        zone: A ``tzinfo``, an IANA zone name, ``"local"`` or ``None``.

    Raises:
        ImproperConfigurationError: If the zone name is unknown.

    Returns:
        The ``tzinfo`` to convert into, or ``None`` for the system local zone.
    """
    if zone is None or isinstance(zone, datetime.tzinfo):
        return zone
    if zone.lower() == LOCAL_ZONE:
        return None
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        msg = f"Unknown time zone: {zone!r}"
        raise ImproperConfigurationError(msg) from e


def convert_if_necessary(value: Any, zone: "Optional[datetime.tzinfo]" = None) -> Any:
    """Convert an aware ``datetime`` into a naive one in ``zone``.

    Args:
        value: Any parameter value.
        zone: Reference zone. ``None`` is the system local zone.

    Returns:
        The naive wall-clock time in ``zone`` for aware date-times, otherwise
        ``value`` unchanged.
    """
    if isinstance(value, datetime.datetime) and value.utcoffset() is not None:
        return value.astimezone(zone).replace(tzinfo=None)
    return value
