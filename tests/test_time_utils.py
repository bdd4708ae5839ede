"""Time helper tests."""

from __future__ import annotations

from datetime import date

import pytest

from app.utils.time import (
    last_completed_week_range,
    parse_iso_date,
    parse_weekday,
    week_range_for,
    week_start_for,
)


def test_parse_iso_date_with_default() -> None:
    """Missing input should return default value when provided."""
    default = parse_iso_date("2026-02-01")
    assert parse_iso_date(None, default=default) == default


def test_parse_iso_date_valid_input() -> None:
    """ISO date parsing should return exact date."""
    result = parse_iso_date("2026-02-07")
    assert result.isoformat() == "2026-02-07"


def test_parse_iso_date_without_default_fails() -> None:
    """A missing date without a fallback is an error."""
    with pytest.raises(ValueError):
        parse_iso_date("")


@pytest.mark.parametrize(
    ("value", "expected"),
    [("monday", 0), ("Sunday", 6), ("wed", 2), ("3", 3), (5, 5)],
)
def test_parse_weekday(value: str | int, expected: int) -> None:
    """Weekday names, abbreviations and indexes map to Monday=0."""
    assert parse_weekday(value) == expected


@pytest.mark.parametrize("value", ["mo", "funday", 7, "-1"])
def test_parse_weekday_rejects_unknown(value: str | int) -> None:
    """Ambiguous or out-of-range weekdays are rejected."""
    with pytest.raises(ValueError):
        parse_weekday(value)


def test_week_start_for_monday_and_sunday_weeks() -> None:
    """Week starts follow the configured first weekday."""
    wednesday = date(2026, 3, 11)
    assert week_start_for(wednesday) == date(2026, 3, 9)
    assert week_start_for(wednesday, week_start_day=6) == date(2026, 3, 8)
    assert week_start_for(date(2026, 3, 9)) == date(2026, 3, 9)


def test_week_range_is_inclusive_seven_days() -> None:
    """A week range spans start through start + 6."""
    assert week_range_for(date(2026, 3, 15)) == (date(2026, 3, 9), date(2026, 3, 15))


def test_last_completed_week_range() -> None:
    """The last completed week ends the day before the current week starts."""
    assert last_completed_week_range(date(2026, 3, 11)) == (date(2026, 3, 2), date(2026, 3, 8))
    assert last_completed_week_range(date(2026, 3, 9)) == (date(2026, 3, 2), date(2026, 3, 8))
