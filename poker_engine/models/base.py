"""Field codecs shared by the hash-backed models.

Hashes hold text only. Integers are decimal, booleans ``"true"/"false"``
(``"1"`` is also read as true), optional integers use ``""`` for absent and
lists are JSON.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from poker_engine.utils.json_utils import json_dumps
from poker_engine.utils.time_utils import format_rfc3339

RedisHash = dict[str, str]


def parse_int(value: str | None) -> int:
    """Decimal text to int; missing or malformed values give 0."""
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def parse_optional_int(value: str | None) -> int | None:
    if not value or value == "null":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_bool(value: str | None) -> bool:
    return value in ("true", "1")


def encode_value(value: Any) -> str:
    """Encode one field value for HSET."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return format_rfc3339(value)
    if isinstance(value, (list, tuple, dict)):
        return json_dumps(value)
    return str(value)


def encode_fields(fields: Mapping[str, Any]) -> RedisHash:
    return {name: encode_value(value) for name, value in fields.items()}
