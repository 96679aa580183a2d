"""DateTime utility functions for todobi."""

import re
from datetime import datetime, timezone
from typing import Optional, Union

# Go writes up to nanosecond precision with trailing zeros trimmed
_FRACTION_RE = re.compile(r"\.(\d+)")


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware datetimes are returned unchanged."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def normalize_rfc3339(value: str) -> str:
    """
    Make an RFC3339 string parseable by Python.

    Pads or truncates fractional seconds to exactly six digits and rewrites
    a trailing ``Z`` as ``+00:00``.

    Examples:
        >>> normalize_rfc3339("2025-11-02T14:03:11.123456789-07:00")
        '2025-11-02T14:03:11.123456-07:00'
        >>> normalize_rfc3339("0001-01-01T00:00:00Z")
        '0001-01-01T00:00:00+00:00'
    """
    value = value.strip()
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value)
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return value


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """
    Parse an RFC3339 timestamp (or pass a datetime through) as an aware datetime.

    Raises:
        ValueError: If the string is not a valid timestamp
    """
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(datetime.fromisoformat(normalize_rfc3339(value)))


def is_zero_time(dt: Optional[datetime]) -> bool:
    """Return True for None or Go's zero time (year 1)."""
    return dt is None or dt.year == 1


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as RFC3339, using ``Z`` for UTC."""
    text = ensure_aware(dt).isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def describe_age(created_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe how old a task is.

    Returns:
        "Created today", "1 day old" or "N days old"
    """
    now = now or utc_now()
    days = int((ensure_aware(now) - ensure_aware(created_at)).total_seconds() // 86400)
    if days <= 0:
        return "Created today"
    if days == 1:
        return "1 day old"
    return f"{days} days old"


def format_completed_at(dt: datetime) -> str:
    """Format a completion timestamp for display in local time (YYYY-MM-DD HH:MM)."""
    return ensure_aware(dt).astimezone().strftime("%Y-%m-%d %H:%M")
