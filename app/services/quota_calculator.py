"""Weekly quota arithmetic for ``weekly_frequency`` chores."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal

from app.schemas.chore import ChoreDefinition, ChoreLog, ChoreStatus
from app.schemas.progress import WeeklyProgressSnapshot

CENT = Decimal("0.01")
BONUS_DECAY = Decimal("0.5")
ZERO = Decimal("0.00")

COUNTED_STATUSES = frozenset({ChoreStatus.COMPLETED, ChoreStatus.APPROVED})


def round_money(value: Decimal) -> Decimal:
    """Round to cents, ties to even."""
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def bonus_completion_value(earn_value: Decimal, bonus_index: int) -> Decimal:
    """Value of the ``bonus_index``-th completion beyond target (1-based)."""
    return round_money(earn_value * BONUS_DECAY**bonus_index)


def completion_value(definition: ChoreDefinition, prior: int) -> Decimal:
    """Value of a completion that follows ``prior`` earlier ones in the same week."""
    target = definition.target_count
    if prior < target:
        return round_money(definition.earn_value)
    if not definition.is_repeatable:
        return ZERO
    return bonus_completion_value(definition.earn_value, prior - target + 1)


def next_completion_value(definition: ChoreDefinition, completed_count: int) -> Decimal:
    return completion_value(definition, completed_count)


def counted_logs(logs: Iterable[ChoreLog], week_start: date, week_end: date) -> list[ChoreLog]:
    """Logs that count toward the quota for the given week."""
    return [
        log
        for log in logs
        if log.status in COUNTED_STATUSES and week_start <= log.log_date <= week_end
    ]


def calculate_weekly_progress(
    definition: ChoreDefinition,
    logs: Iterable[ChoreLog],
    week_start: date,
    week_end: date,
) -> WeeklyProgressSnapshot:
    """Build a progress snapshot for one weekly chore and week.

    Base earnings cover completions up to target. Repeatable chores earn
    half as much again for each completion beyond target, every bonus term
    rounded on its own before summing.
    """
    if not definition.is_weekly:
        raise ValueError(f"Chore {definition.id} is not a weekly-frequency chore")

    completed = len(counted_logs(logs, week_start, week_end))
    target = definition.target_count
    earn_value = definition.earn_value

    earned = round_money(earn_value * min(completed, target))
    bonus = ZERO
    if definition.is_repeatable and completed > target:
        bonus = sum(
            (bonus_completion_value(earn_value, k) for k in range(1, completed - target + 1)),
            ZERO,
        )

    return WeeklyProgressSnapshot(
        chore_definition_id=definition.id,
        chore_name=definition.name,
        week_start=week_start,
        week_end=week_end,
        completed_count=completed,
        target_count=target,
        earned_amount=earned,
        bonus_amount=bonus,
        next_completion_value=next_completion_value(definition, completed),
        potential_earnings=round_money(earn_value * target),
        is_repeatable=definition.is_repeatable,
    )
