"""
Cache-Safe Serialization

Every value that enters a cache tier goes through two steps:

1. `to_cache_safe(value)` normalizes it to plain JSON primitives
   (dict / list / str / int / float / bool / None). Datetimes become ISO-8601
   UTC strings with millisecond precision and a `Z` suffix, so a page served
   from memory, from Redis or fresh from the database is byte-for-byte the
   same shape.
2. `encode(value)` turns the normalized value into orjson bytes; `decode`
   reverses it. Each tier stores its own encoded copy.

Anything that cannot be represented raises CacheSerializationError with the
path of the offending field.
"""

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import orjson
from pydantic import BaseModel

from directory_cache.core.exceptions import CacheSerializationError

# datetimes and dataclasses must have been normalized already; orjson would
# otherwise serialize them in its own format and break cached/fresh equality.
_ENCODE_OPTIONS = orjson.OPT_PASSTHROUGH_DATETIME | orjson.OPT_PASSTHROUGH_DATACLASS

# Widest integers orjson encodes (signed 64-bit low, unsigned 64-bit high)
_INT_MIN = -(2**63)
_INT_MAX = 2**64 - 1


def isoformat_utc(value: datetime) -> str:
    """
    Format a datetime as `YYYY-MM-DDTHH:MM:SS.mmmZ`.

    Naive datetimes are taken to be UTC (that is how the database returns
    them).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def to_cache_safe(value: Any, _path: str = "$") -> Any:
    """
    Recursively normalize `value` to JSON primitives.

    Raises:
        CacheSerializationError: for types with no cache-safe form, non-string
            mapping keys, integers wider than 64 bits, or non-finite floats.
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        if not _INT_MIN <= value <= _INT_MAX:
            raise CacheSerializationError(
                "Integer outside the 64-bit range cannot be cached", details={"path": _path}
            )
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise CacheSerializationError(
                "Non-finite float cannot be cached", details={"path": _path}
            )
        return value
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return isoformat_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, Enum):
        return to_cache_safe(value.value, _path)
    if isinstance(value, BaseModel):
        return to_cache_safe(value.model_dump(), _path)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_cache_safe(getattr(value, f.name), f"{_path}.{f.name}")
            for f in dataclasses.fields(value)
        }
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise CacheSerializationError(
                    "Mapping keys must be strings",
                    details={"path": _path, "key_type": type(key).__name__},
                )
            result[key] = to_cache_safe(item, f"{_path}.{key}")
        return result
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value, key=repr) if isinstance(value, (set, frozenset)) else value
        return [to_cache_safe(item, f"{_path}[{i}]") for i, item in enumerate(items)]

    raise CacheSerializationError(
        f"Value of type {type(value).__name__} is not cache-safe",
        details={"path": _path, "type": type(value).__name__},
    )


def encode(value: Any) -> bytes:
    """Encode an already-normalized value to bytes."""
    try:
        return orjson.dumps(value, option=_ENCODE_OPTIONS)
    except TypeError as e:  # orjson.JSONEncodeError is a TypeError
        raise CacheSerializationError.from_exception(e, message="Value could not be encoded")


def decode(payload: bytes | str) -> Any:
    """Decode bytes written by `encode`."""
    return orjson.loads(payload)
