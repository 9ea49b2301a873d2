"""Unit tests for JSON serialization helpers."""

import datetime
import enum
import uuid
from decimal import Decimal

import pytest

from sqltemplate.exceptions import SerializationError
from sqltemplate.utils.serializers import from_json, to_json


class Status(enum.Enum):
    ACTIVE = "active"


def test_to_json_common_types() -> None:
    """Test values outside of plain JSON are encoded by the hook."""
    encoded = to_json(
        {
            "sal": Decimal("1600.00"),
            "status": Status.ACTIVE,
            "id": uuid.UUID(int=1),
            "hiredate": datetime.date(1981, 2, 20),
            "tags": frozenset({"a"}),
        }
    )

    assert from_json(encoded) == {
        "sal": "1600.00",
        "status": "active",
        "id": "00000000-0000-0000-0000-000000000001",
        "hiredate": "1981-02-20",
        "tags": ["a"],
    }


def test_to_json_as_bytes() -> None:
    """Test bytes output."""
    assert to_json([1, 2], as_bytes=True) == b"[1,2]"


def test_to_json_unsupported_type() -> None:
    """Test unsupported values raise SerializationError."""
    with pytest.raises(SerializationError):
        to_json({"obj": object()})


def test_from_json_invalid() -> None:
    """Test invalid JSON raises SerializationError."""
    with pytest.raises(SerializationError):
        from_json("{not json")
