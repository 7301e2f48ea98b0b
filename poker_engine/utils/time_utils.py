"""Time helpers. All timestamps are UTC."""

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_now() -> str:
    """Current time as RFC-3339 text, second precision (e.g. 2024-05-01T12:00:00Z)."""
    return format_rfc3339(utc_now())


def format_rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_rfc3339(value: str | None) -> datetime | None:
    """Parse RFC-3339 text; empty, ``"null"`` or malformed values give ``None``."""
    if not value or value == "null":
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def unix_timestamp() -> int:
    return int(time.time())
