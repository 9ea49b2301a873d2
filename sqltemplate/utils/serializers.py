"""JSON serialization utilities for sqltemplate.

Backed by msgspec. Used by the structured log formatter and by drivers
that store mappings and sequences as JSON text.
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, overload
from uuid import UUID

import msgspec

from sqltemplate.exceptions import SerializationError

__all__ = ("from_json", "to_json")


def _default_enc_hook(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (datetime.date, datetime.time)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    msg = f"Unsupported type: {type(obj)!r}"
    raise TypeError(msg)


_encoder = msgspec.json.Encoder(enc_hook=_default_enc_hook)
_decoder = msgspec.json.Decoder()


@overload
def to_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def to_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def to_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    """Encode data to JSON string or bytes.

    Args:
        data: Data to encode.
        as_bytes: Whether to return bytes instead of string.

    Raises:
        SerializationError: If the data cannot be encoded.

    Returns:
        JSON string or bytes representation based on as_bytes parameter.
    """
    try:
        encoded = _encoder.encode(data)
    except (TypeError, msgspec.EncodeError) as e:
        msg = f"Unable to encode {type(data).__name__} as JSON"
        raise SerializationError(msg) from e
    return encoded if as_bytes else encoded.decode("utf-8")


def from_json(data: "str | bytes") -> Any:
    """Decode JSON string or bytes to Python object.

    Args:
        data: JSON string or bytes to decode.

    Raises:
        SerializationError: If the data is not valid JSON.

    Returns:
        Decoded Python object.
    """
    try:
        return _decoder.decode(data)
    except msgspec.DecodeError as e:
        msg = "Unable to decode JSON"
        raise SerializationError(msg) from e
