"""Weekly progress read model tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from conftest import CHILD_ID, PARENT_ID, TODAY

from app.schemas.chore import ChoreStatus
from app.schemas.user import FamilySettings
from app.utils.errors import InvalidInputError, NotFoundError


def test_weekly_summary(services, add_weekly_chore, add_chore) -> None:
    """The summary lists weekly chores only, with totals and days left."""
    vacuum = add_weekly_chore(earn_value=Decimal("2"), weekly_target_count=2)
    add_weekly_chore(name="Laundry", earn_value=Decimal("3"))
    add_chore(name="Dishes")
    services.chore_logs.request_status_change(
        vacuum.id, date(2026, 3, 9), PARENT_ID, ChoreStatus.APPROVED
    )
    services.chore_logs.request_status_change(
        vacuum.id, date(2026, 3, 10), PARENT_ID, ChoreStatus.APPROVED
    )

    summary = services.progress.get_weekly_summary(CHILD_ID, TODAY)

    assert summary.week_start == date(2026, 3, 9)
    assert summary.week_end == date(2026, 3, 15)
    assert summary.days_remaining == 5
    assert [chore.chore_name for chore in summary.chores] == ["Vacuum", "Laundry"]
    assert summary.total_earned == Decimal("4.00")
    assert summary.total_potential == Decimal("7.00")
    assert summary.chores_completed == 1


def test_week_start_follows_family_settings(services, repository, add_weekly_chore) -> None:
    """A Sunday week start shifts the window."""
    repository.family_settings = FamilySettings(week_start_day="sunday")
    services.family_settings.invalidate()
    chore = add_weekly_chore()

    progress = services.progress.get_chore_progress(chore.id, TODAY)

    assert progress.week_start == date(2026, 3, 8)
    assert progress.week_end == date(2026, 3, 14)


def test_progress_requires_assignment_and_weekly_schedule(services, add_chore, add_weekly_chore) -> None:
    """Progress is only available for the person's own weekly chores."""
    fixed = add_chore()
    weekly = add_weekly_chore()

    with pytest.raises(InvalidInputError):
        services.progress.get_chore_progress(fixed.id)
    with pytest.raises(NotFoundError):
        services.progress.get_weekly_progress("someone-else", weekly.id)
    with pytest.raises(NotFoundError):
        services.progress.get_chore_progress(404)

    assert services.progress.get_weekly_progress(CHILD_ID, weekly.id).completed_count == 0


def test_can_complete(services, add_chore, add_weekly_chore) -> None:
    """Weekly chores accept completions until a non-repeatable target is met."""
    fixed = add_chore()
    weekly = add_weekly_chore(weekly_target_count=1)
    repeatable = add_weekly_chore(weekly_target_count=1, is_repeatable=True)
    weekend_only = add_chore(active_days=[5, 6])

    assert services.progress.can_complete(fixed.id, TODAY) is True
    assert services.progress.can_complete(weekend_only.id, TODAY) is False
    assert services.progress.can_complete(404, TODAY) is False

    for chore in (weekly, repeatable):
        services.chore_logs.request_status_change(
            chore.id, date(2026, 3, 9), PARENT_ID, ChoreStatus.APPROVED
        )
    assert services.progress.can_complete(weekly.id, TODAY) is False
    assert services.progress.can_complete(repeatable.id, TODAY) is True
