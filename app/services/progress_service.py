"""Weekly progress read model for quota-based chores."""

from __future__ import annotations

from datetime import date

from app.repositories.base import ChoreLedgerRepository
from app.schemas.chore import ChoreDefinition
from app.schemas.progress import WeeklyProgressSnapshot, WeeklyProgressSummary
from app.services.family_settings_service import FamilySettingsService
from app.services.quota_calculator import COUNTED_STATUSES, calculate_weekly_progress
from app.services.schedule_service import is_due
from app.utils.errors import InvalidInputError, NotFoundError
from app.utils.time import DateProvider


class WeeklyProgressService:
    """Compute weekly progress on demand; nothing here is stored."""

    def __init__(
        self,
        repository: ChoreLedgerRepository,
        family_settings: FamilySettingsService,
        dates: DateProvider,
    ) -> None:
        self.repository = repository
        self.family_settings = family_settings
        self.dates = dates

    def snapshot(self, definition: ChoreDefinition, as_of: date) -> WeeklyProgressSnapshot:
        """Progress of ``definition`` in the week containing ``as_of``."""
        week_start, week_end = self.family_settings.week_range_for(as_of)
        logs = self.repository.list_chore_logs(
            definition.id, week_start, week_end, statuses=COUNTED_STATUSES
        )
        return calculate_weekly_progress(definition, logs, week_start, week_end)

    def get_chore_progress(self, chore_id: int, as_of: date | None = None) -> WeeklyProgressSnapshot:
        definition = self._weekly_definition(chore_id)
        return self.snapshot(definition, as_of or self.dates.today())

    def get_weekly_progress(
        self,
        person_id: str,
        chore_id: int,
        as_of: date | None = None,
    ) -> WeeklyProgressSnapshot:
        """Progress of one of ``person_id``'s weekly chores."""
        definition = self._weekly_definition(chore_id)
        if definition.assigned_person_id != person_id:
            raise NotFoundError("Weekly chore")
        return self.snapshot(definition, as_of or self.dates.today())

    def get_weekly_summary(self, person_id: str, as_of: date | None = None) -> WeeklyProgressSummary:
        """All of a person's weekly chores for the week containing ``as_of``."""
        as_of = as_of or self.dates.today()
        week_start, week_end = self.family_settings.week_range_for(as_of)
        chores = [
            self.snapshot(definition, as_of)
            for definition in self.repository.list_weekly_chores_for_person(person_id)
            if definition.is_within_window(week_start, week_end)
        ]
        return WeeklyProgressSummary(
            person_id=person_id,
            week_start=week_start,
            week_end=week_end,
            days_remaining=max(1, (week_end - as_of).days + 1),
            chores=chores,
        )

    def can_complete(self, chore_id: int, on_date: date) -> bool:
        """Return True when another completion would still be accepted."""
        definition = self.repository.get_chore_definition(chore_id)
        if definition is None or not is_due(definition, on_date):
            return False
        if not definition.is_weekly:
            return True
        return self.snapshot(definition, on_date).can_do_more

    def _weekly_definition(self, chore_id: int) -> ChoreDefinition:
        definition = self.repository.get_chore_definition(chore_id)
        if definition is None:
            raise NotFoundError("Chore")
        if not definition.is_weekly:
            raise InvalidInputError(f"{definition.name} is not a weekly chore")
        return definition
