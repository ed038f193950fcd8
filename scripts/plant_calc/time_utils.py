"""Time, calendar-day, and primitive conversion helpers for plant calculation."""

import os
from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .constants import DEFAULT_TIMEZONE


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO string (UTC) if present."""
    if dt is None:
        return None
    return to_utc(dt).isoformat()


def to_utc(dt: datetime) -> datetime:
    """Normalize a datetime to aware UTC, treating naive values as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def get_current_time() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def get_timezone_name() -> str:
    """Resolve configured timezone name with validation and fallback."""
    candidate = os.environ.get("GITPLANT_TIMEZONE", DEFAULT_TIMEZONE)
    try:
        ZoneInfo(candidate)
        return candidate
    except (ZoneInfoNotFoundError, ValueError):
        return DEFAULT_TIMEZONE


def to_local_time(dt: datetime, timezone_name: str | None = None) -> datetime:
    """Convert a datetime to the configured local timezone."""
    zone_name = timezone_name or get_timezone_name()
    return to_utc(dt).astimezone(ZoneInfo(zone_name))


def to_day_key(dt: datetime, timezone_name: str | None = None) -> str:
    """
    Map a timestamp to its calendar-day key (YYYY-MM-DD).

    Day boundaries are local midnights in the configured timezone.
    """
    return to_local_time(dt, timezone_name).date().isoformat()


def shift_day_key(day_key: str, days: int) -> str:
    """Move a day key by a whole number of calendar days."""
    return (date.fromisoformat(day_key) + timedelta(days=days)).isoformat()


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse ISO datetime string into timezone-aware UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return to_utc(parsed)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an event timestamp into an aware UTC datetime.

    Accepts datetimes, ISO-8601 strings, and epoch seconds. Anything else
    (including booleans and out-of-range epochs) yields None.
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, str):
        return parse_iso_datetime(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def to_int(value: Any, default: int = 0) -> int:
    """Best-effort integer conversion with sane fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def is_truthy(value: Any) -> bool:
    """Interpret common truthy string/boolean values."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
