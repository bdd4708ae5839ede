"""End-of-week penalties for weekly chores that missed their quota."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from app.repositories.base import ChoreLedgerRepository, default_account
from app.schemas.chore import ChoreDefinition
from app.schemas.ledger import NewLedgerTransaction, TransactionType
from app.schemas.reconciliation import (
    IncompleteChoreRecord,
    WeeklyReconciliationResult,
    WeeklyReconciliationStatus,
)
from app.schemas.user import FamilySettings, Profile
from app.services.family_settings_service import FamilySettingsService
from app.services.quota_calculator import (
    COUNTED_STATUSES,
    ZERO,
    calculate_weekly_progress,
    round_money,
)
from app.services.transaction_manager import ReconciliationTransactionManager
from app.utils.errors import InvalidInputError, NotFoundError
from app.utils.time import DateProvider

logger = logging.getLogger(__name__)

LAST_RECONCILIATION_KEY = "last_weekly_reconciliation"


class WeeklyPenaltyReconciler:
    """Post one penalty per (person, chore, week) for unmet weekly quotas.

    Re-running a week is safe: chores that already carry a penalty for the
    same week end are reported as already reconciled, and storage refuses a
    second row for the same key.
    """

    def __init__(
        self,
        repository: ChoreLedgerRepository,
        family_settings: FamilySettingsService,
        transactions: ReconciliationTransactionManager,
        dates: DateProvider,
    ) -> None:
        self.repository = repository
        self.family_settings = family_settings
        self.transactions = transactions
        self.dates = dates

    def run(self, week_end_date: date | None = None) -> list[WeeklyReconciliationResult]:
        """Reconcile every active person for one week.

        ``week_end_date`` may be any day of the target week and defaults to
        the most recently completed week. A week that has not ended yet is
        rejected.
        """
        if week_end_date is None:
            week_start, week_end = self.previous_week_range()
        else:
            week_start, week_end = self.family_settings.week_range_for(week_end_date)
            if week_end >= self.dates.today():
                raise InvalidInputError(
                    f"The week ending {week_end.isoformat()} has not finished yet"
                )

        family = self.family_settings.get()
        results: list[WeeklyReconciliationResult] = []
        failures = 0
        for person in self.repository.list_active_people():
            try:
                result = self.transactions.run(
                    lambda person=person: self.reconcile_person_week(
                        person, week_start, week_end, family
                    ),
                    label=f"weekly penalties for {person.id}",
                )
            except Exception:
                failures += 1
                logger.exception(
                    "Weekly reconciliation failed for %s (week ending %s)",
                    person.id,
                    week_end.isoformat(),
                )
                continue
            results.append(result)

        if failures:
            logger.warning(
                "Weekly reconciliation for week ending %s finished with %d failure(s); "
                "leaving it marked as pending",
                week_end.isoformat(),
                failures,
            )
        else:
            self._record_reconciliation(week_end)

        total = sum((result.total_penalty for result in results), Decimal("0"))
        logger.info(
            "Weekly reconciliation for week ending %s: %d people, %s in new penalties",
            week_end.isoformat(),
            len(results),
            total,
        )
        return results

    def reconcile_person_week(
        self,
        person: Profile,
        week_start: date,
        week_end: date,
        family: FamilySettings,
    ) -> WeeklyReconciliationResult:
        """Check one person's weekly chores and post the missing penalties."""
        already = self.repository.find_weekly_penalty_chore_ids(person.id, week_end)
        records: dict[int, IncompleteChoreRecord] = {}
        penalties: list[NewLedgerTransaction] = []
        skipped: list[int] = []
        account = None

        for definition in self._chores_for_week(person.id, week_start, week_end):
            logs = self.repository.list_chore_logs(
                definition.id, week_start, week_end, statuses=COUNTED_STATUSES
            )
            progress = calculate_weekly_progress(definition, logs, week_start, week_end)
            if progress.quota_met:
                continue
            if definition.id in already:
                skipped.append(definition.id)
                continue

            missed = progress.target_count - progress.completed_count
            amount = round_money(
                missed * definition.earn_value * family.weekly_incomplete_penalty_percent
            )
            if amount <= ZERO:
                continue

            if account is None:
                account = default_account(self.repository.list_accounts(person.id))
                if account is None:
                    raise NotFoundError("Ledger account")

            records[definition.id] = IncompleteChoreRecord(
                chore_definition_id=definition.id,
                chore_name=definition.name,
                target_count=progress.target_count,
                completed_count=progress.completed_count,
                penalty_amount=amount,
            )
            penalties.append(
                NewLedgerTransaction(
                    ledger_account_id=account.id,
                    person_id=person.id,
                    amount=-amount,
                    type=TransactionType.PENALTY,
                    description=(
                        f"Incomplete: {definition.name} "
                        f"({progress.completed_count}/{progress.target_count})"
                    ),
                    transaction_date=week_end,
                    chore_definition_id=definition.id,
                    week_end_date=week_end,
                )
            )

        posted = self.repository.post_weekly_penalties(person.id, week_end, penalties)
        posted_ids = {transaction.chore_definition_id for transaction in posted}
        for chore_id in records:
            if chore_id not in posted_ids:
                # Posted by a concurrent run between the check and the insert.
                skipped.append(chore_id)

        incomplete = [record for chore_id, record in records.items() if chore_id in posted_ids]
        for record in incomplete:
            logger.info(
                "Penalised %s %s for %s (%d/%d)",
                person.id,
                record.penalty_amount,
                record.chore_name,
                record.completed_count,
                record.target_count,
            )

        return WeeklyReconciliationResult(
            person_id=person.id,
            display_name=person.display_name,
            week_start=week_start,
            week_end=week_end,
            incomplete_chores=incomplete,
            already_reconciled_chore_ids=sorted(skipped),
            total_penalty=sum((record.penalty_amount for record in incomplete), ZERO),
        )

    def previous_week_range(self) -> tuple[date, date]:
        return self.family_settings.last_completed_week_range(self.dates.today())

    def previous_week_end(self) -> date:
        return self.previous_week_range()[1]

    def last_reconciliation_date(self) -> date | None:
        value = self.repository.get_app_setting(LAST_RECONCILIATION_KEY)
        if not value:
            return None
        try:
            return date.fromisoformat(value)
        except ValueError:
            logger.warning("Ignoring malformed %s value %r", LAST_RECONCILIATION_KEY, value)
            return None

    def is_reconciliation_needed(self) -> bool:
        """Return True when the most recently completed week is not reconciled yet."""
        last = self.last_reconciliation_date()
        return last is None or last < self.previous_week_end()

    def status(self) -> WeeklyReconciliationStatus:
        last = self.last_reconciliation_date()
        previous = self.previous_week_end()
        return WeeklyReconciliationStatus(
            last_reconciled_week_end=last,
            previous_week_end=previous,
            reconciliation_needed=last is None or last < previous,
        )

    def _chores_for_week(
        self, person_id: str, week_start: date, week_end: date
    ) -> list[ChoreDefinition]:
        return [
            definition
            for definition in self.repository.list_weekly_chores_for_person(person_id)
            if definition.is_within_window(week_start, week_end)
        ]

    def _record_reconciliation(self, week_end: date) -> None:
        last = self.last_reconciliation_date()
        if last is not None and last >= week_end:
            return
        self.repository.set_app_setting(LAST_RECONCILIATION_KEY, week_end.isoformat())
