"""Weekly quota arithmetic tests."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.schemas.chore import ChoreDefinition, ChoreLog, ChoreStatus, ScheduleKind
from app.services.quota_calculator import (
    bonus_completion_value,
    calculate_weekly_progress,
    completion_value,
    round_money,
)

WEEK_START = date(2026, 3, 9)
WEEK_END = date(2026, 3, 15)


def _weekly(**overrides) -> ChoreDefinition:
    values = {
        "id": 7,
        "name": "Vacuum",
        "schedule_kind": ScheduleKind.WEEKLY_FREQUENCY,
        "earn_value": Decimal("10"),
        "weekly_target_count": 3,
        "is_repeatable": True,
    }
    values.update(overrides)
    return ChoreDefinition(**values)


def _logs(count: int, status: ChoreStatus = ChoreStatus.APPROVED, start: date = WEEK_START):
    return [
        ChoreLog(
            id=index + 1,
            chore_definition_id=7,
            log_date=start + timedelta(days=index),
            status=status,
        )
        for index in range(count)
    ]


def test_completion_values_diminish_after_target() -> None:
    """Completions 1-3 earn 10, then 5.00, 2.50 and 1.25."""
    definition = _weekly()
    values = [completion_value(definition, prior) for prior in range(6)]
    assert values == [
        Decimal("10.00"),
        Decimal("10.00"),
        Decimal("10.00"),
        Decimal("5.00"),
        Decimal("2.50"),
        Decimal("1.25"),
    ]


def test_non_repeatable_chore_earns_nothing_beyond_target() -> None:
    """Completions past target are worth zero when the chore is not repeatable."""
    definition = _weekly(is_repeatable=False)
    assert completion_value(definition, 3) == Decimal("0.00")


def test_progress_totals_with_bonus() -> None:
    """Six completions of a 10/3 chore earn 30 base plus 8.75 bonus."""
    progress = calculate_weekly_progress(_weekly(), _logs(6), WEEK_START, WEEK_END)
    assert progress.completed_count == 6
    assert progress.earned_amount == Decimal("30.00")
    assert progress.bonus_amount == Decimal("8.75")
    assert progress.total_earned == Decimal("38.75")
    assert progress.potential_earnings == Decimal("30.00")
    # 10 * 0.0625 = 0.625, ties round to even.
    assert progress.next_completion_value == Decimal("0.62")
    assert progress.quota_met is True
    assert progress.can_do_more is True
    assert progress.percent_complete == 200


def test_bonus_terms_are_rounded_before_summing() -> None:
    """0.075 + 0.0375 sums to 0.12 when each term is rounded first."""
    definition = _weekly(earn_value=Decimal("0.15"), weekly_target_count=1)
    progress = calculate_weekly_progress(definition, _logs(3), WEEK_START, WEEK_END)
    assert progress.bonus_amount == Decimal("0.12")
    assert round_money(Decimal("0.075") + Decimal("0.0375")) == Decimal("0.11")


def test_rounding_is_half_even() -> None:
    """Exact ties go to the even cent."""
    assert bonus_completion_value(Decimal("0.25"), 1) == Decimal("0.12")
    assert bonus_completion_value(Decimal("0.25"), 3) == Decimal("0.03")
    assert round_money(Decimal("0.135")) == Decimal("0.14")


def test_under_target_progress() -> None:
    """Under target the next completion earns the full value."""
    progress = calculate_weekly_progress(
        _weekly(is_repeatable=False), _logs(1), WEEK_START, WEEK_END
    )
    assert progress.earned_amount == Decimal("10.00")
    assert progress.bonus_amount == Decimal("0.00")
    assert progress.remaining_count == 2
    assert progress.next_completion_value == Decimal("10.00")
    assert progress.can_do_more is True
    assert progress.percent_complete == 33


def test_only_completed_and_approved_logs_in_week_count() -> None:
    """Pending, missed and out-of-week logs are ignored."""
    logs = (
        _logs(1, ChoreStatus.COMPLETED)
        + _logs(1, ChoreStatus.PENDING, start=WEEK_START + timedelta(days=1))
        + _logs(1, ChoreStatus.MISSED, start=WEEK_START + timedelta(days=2))
        + _logs(1, ChoreStatus.APPROVED, start=WEEK_START - timedelta(days=1))
        + _logs(1, ChoreStatus.APPROVED, start=WEEK_END)
    )
    progress = calculate_weekly_progress(_weekly(), logs, WEEK_START, WEEK_END)
    assert progress.completed_count == 2


def test_full_non_repeatable_quota_cannot_do_more() -> None:
    """A met, non-repeatable quota offers nothing further."""
    progress = calculate_weekly_progress(
        _weekly(is_repeatable=False), _logs(4), WEEK_START, WEEK_END
    )
    assert progress.earned_amount == Decimal("30.00")
    assert progress.bonus_amount == Decimal("0.00")
    assert progress.next_completion_value == Decimal("0.00")
    assert progress.can_do_more is False


def test_fixed_day_chores_are_rejected() -> None:
    """Fixed-day chores have no weekly quota."""
    definition = ChoreDefinition(id=1, name="Dishes", earn_value=Decimal("1"))
    with pytest.raises(ValueError):
        calculate_weekly_progress(definition, [], WEEK_START, WEEK_END)
