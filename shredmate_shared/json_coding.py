"""
Canonical JSON coding for the ShredMate backend.

Field names travel as snake_case and dates as ISO-8601 strings. Outbound
values may be pydantic models, dataclasses, enums, datetimes or plain
containers; inbound bodies are validated against a response type with a
pydantic TypeAdapter.
"""

import dataclasses
import json
import re
from datetime import date, datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, TypeAdapter

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])')


def to_snake_case(name: str) -> str:
    """Convert ``avatarUrl`` / ``createdByUserID`` style names to snake_case."""
    if '_' in name or name.islower():
        return name
    return _CAMEL_BOUNDARY.sub('_', name).lower()


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is not None and value.utcoffset() == timezone.utc.utcoffset(None):
        return value.replace(tzinfo=None).isoformat() + 'Z'
    return value.isoformat()


def to_wire(value: Any) -> Any:
    """
    Convert a value into JSON-compatible primitives with snake_case keys.

    Optional fields that are unset (None) on models and dataclasses are
    omitted, so partial update bodies only carry the fields being changed.

    Raises:
        TypeError: If the value contains something that has no JSON form
    """
    if isinstance(value, BaseModel):
        value = value.model_dump(mode='python', exclude_none=True)
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {
            field.name: getattr(value, field.name)
            for field in dataclasses.fields(value)
            if getattr(value, field.name) is not None
        }

    if isinstance(value, dict):
        return {to_snake_case(str(key)): to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return _format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _normalize_keys(data: Any) -> Any:
    if isinstance(data, dict):
        return {to_snake_case(key): _normalize_keys(item) for key, item in data.items()}
    if isinstance(data, list):
        return [_normalize_keys(item) for item in data]
    return data


@lru_cache(maxsize=128)
def _adapter_for(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


class JSONCoding:
    """Encoder/decoder pair used by the request builder and the clients."""

    def encode(self, value: Any) -> bytes:
        """
        Serialize a value to canonical JSON bytes.

        Raises:
            TypeError, ValueError: If the value cannot be serialized
        """
        return json.dumps(to_wire(value), ensure_ascii=False, allow_nan=False).encode('utf-8')

    def decode(self, response_type: Any, data: bytes) -> Any:
        """
        Decode JSON bytes into ``response_type``.

        Raises:
            ValueError: If the body is not JSON (json.JSONDecodeError) or does
                not match the expected shape (pydantic.ValidationError)
        """
        payload = json.loads(data)
        return _adapter_for(response_type).validate_python(_normalize_keys(payload))
