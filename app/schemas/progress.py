"""Weekly quota progress schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, computed_field


class WeeklyProgressSnapshot(BaseModel):
    """Derived progress of one weekly chore; never persisted."""

    chore_definition_id: int
    chore_name: str
    week_start: date
    week_end: date
    completed_count: int
    target_count: int
    earned_amount: Decimal
    bonus_amount: Decimal
    next_completion_value: Decimal
    potential_earnings: Decimal
    is_repeatable: bool = False

    @computed_field
    @property
    def quota_met(self) -> bool:
        return self.completed_count >= self.target_count

    @computed_field
    @property
    def remaining_count(self) -> int:
        return max(0, self.target_count - self.completed_count)

    @computed_field
    @property
    def total_earned(self) -> Decimal:
        return self.earned_amount + self.bonus_amount

    @computed_field
    @property
    def can_do_more(self) -> bool:
        return self.is_repeatable or not self.quota_met

    @computed_field
    @property
    def percent_complete(self) -> int:
        if self.target_count <= 0:
            return 100
        return round(self.completed_count / self.target_count * 100)


class WeeklyProgressSummary(BaseModel):
    """All weekly chores of one person for one week."""

    person_id: str
    week_start: date
    week_end: date
    days_remaining: int
    chores: list[WeeklyProgressSnapshot] = []

    @computed_field
    @property
    def total_earned(self) -> Decimal:
        return sum((chore.total_earned for chore in self.chores), Decimal("0"))

    @computed_field
    @property
    def total_potential(self) -> Decimal:
        return sum((chore.potential_earnings for chore in self.chores), Decimal("0"))

    @computed_field
    @property
    def chores_completed(self) -> int:
        return sum(1 for chore in self.chores if chore.quota_met)
