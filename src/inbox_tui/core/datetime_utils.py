"""Datetime helpers shared across the application."""

from __future__ import annotations

from datetime import UTC, datetime

__all__ = [
    "utc_now",
    "ensure_utc",
    "serialize_datetime",
    "parse_datetime",
    "display_datetime",
    "relative_time",
]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` in UTC, treating naive values as already UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def serialize_datetime(value: datetime | None) -> str | None:
    """Serialise ``value`` to ISO 8601 in UTC."""
    normalized = ensure_utc(value)
    if normalized is None:
        return None
    return normalized.isoformat()


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO 8601 string into an aware UTC ``datetime``."""
    if value is None:
        return None
    return ensure_utc(datetime.fromisoformat(value))


def display_datetime(value: datetime | None) -> str:
    """Return the long form used in the message header."""
    if value is None:
        return ""
    return value.astimezone().strftime("%a, %b %d, %Y at %H:%M")


def relative_time(value: datetime | None, *, now: datetime | None = None) -> str:
    """Return a compact age such as ``5m``, ``3h`` or ``Yesterday``."""
    value = ensure_utc(value)
    if value is None:
        return ""
    current = now or utc_now()
    elapsed = current - value
    minutes = int(elapsed.total_seconds() // 60)
    if minutes < 1:
        return "now"
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    days = elapsed.days
    local = value.astimezone()
    if days == 1:
        return "Yesterday"
    if days < 7:
        return local.strftime("%a")
    if days < 365:
        return local.strftime("%b %d")
    return local.strftime("%b %d, %Y")
