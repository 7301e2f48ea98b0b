"""JSON utilities using orjson.

Usage:
    from poker_engine.utils.json_utils import json_dumps, json_loads

    data = json_loads('{"key": "value"}')
    json_str = json_dumps({"key": "value"})
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

import orjson


def _default_serializer(obj: Any) -> Any:
    """Custom serializer for types not natively supported by orjson."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    if isinstance(obj, bytes):
        return obj.decode("utf-8")
    if hasattr(obj, "__dict__"):
        return obj.__dict__
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def json_dumps(data: Any, *, pretty: bool = False) -> str:
    """Serialize data to a JSON string.

    Args:
        data: Data to serialize
        pretty: If True, format with indentation
    """
    options = orjson.OPT_UTC_Z
    if pretty:
        options |= orjson.OPT_INDENT_2

    return orjson.dumps(data, default=_default_serializer, option=options).decode("utf-8")


def json_loads(data: str | bytes) -> Any:
    """Deserialize a JSON string/bytes to a Python object.

    Raises:
        orjson.JSONDecodeError: If data is not valid JSON (subclass of ValueError)
    """
    return orjson.loads(data)


def loads_string_list(raw: str | None) -> list[str]:
    """Decode a JSON-encoded list of strings stored in a single hash field.

    Empty, missing, or malformed values decode to an empty list.
    """
    if not raw or raw in ("[]", "null"):
        return []
    try:
        value = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]
