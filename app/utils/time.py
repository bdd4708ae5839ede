"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def parse_iso_date(value: str | None, default: date | None = None) -> date:
    """Parse an ISO date string with an optional fallback default."""
    if not value:
        if default is None:
            raise ValueError("Missing required date value")
        return default
    return date.fromisoformat(value)


def parse_weekday(value: str | int) -> int:
    """Return a ``date.weekday()`` index (Monday=0) from a name or index."""
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"Weekday index out of range: {value}")
        return value
    normalized = value.strip().lower()
    if normalized.isdigit():
        return parse_weekday(int(normalized))
    for index, name in enumerate(WEEKDAY_NAMES):
        if name.startswith(normalized) and len(normalized) >= 3:
            return index
    raise ValueError(f"Unknown weekday: {value!r}")


def week_start_for(base: date, week_start_day: int = 0) -> date:
    """Return the first day of the week containing ``base``."""
    return base - timedelta(days=(base.weekday() - week_start_day) % 7)


def week_range_for(base: date, week_start_day: int = 0) -> tuple[date, date]:
    """Return the inclusive (start, end) range of the week containing ``base``."""
    week_start = week_start_for(base, week_start_day)
    return week_start, week_start + timedelta(days=6)


def last_completed_week_range(base: date, week_start_day: int = 0) -> tuple[date, date]:
    """Return the range of the most recently completed week before ``base``."""
    current_start = week_start_for(base, week_start_day)
    week_end = current_start - timedelta(days=1)
    return week_end - timedelta(days=6), week_end


class DateProvider:
    """Source of "now" and "today" in the family's timezone."""

    def __init__(self, timezone: str = "UTC") -> None:
        self.timezone = timezone
        self._zone = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(tz=self._zone)

    def today(self) -> date:
        return self.now().date()
