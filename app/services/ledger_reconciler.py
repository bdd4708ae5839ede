"""Keep each chore log's linked ledger transaction in step with its status."""

from __future__ import annotations

import logging
from decimal import Decimal

from app.repositories.base import ChoreLedgerRepository, default_account
from app.schemas.chore import ChoreDefinition, ChoreLog, ChoreStatus
from app.schemas.ledger import LedgerAccount, LedgerTransaction, NewLedgerTransaction, TransactionType
from app.schemas.reconciliation import (
    ChoreLogChange,
    LedgerDelta,
    ReconcileResult,
    WeeklyPricingGuard,
)
from app.services.family_settings_service import FamilySettingsService
from app.services.quota_calculator import ZERO, completion_value, round_money
from app.utils.errors import NotFoundError

logger = logging.getLogger(__name__)

Effect = tuple[TransactionType, Decimal]


class LedgerReconciler:
    """Compute and commit the ledger delta for one chore log.

    A log has at most one linked transaction. Its presence, amount, type and
    account are a pure function of the log status and the chore definition;
    a transaction that no longer matches is deleted and, when needed,
    replaced.

    Weekly completions are priced in approval order: a log being approved
    now comes after every log already approved that week. The count it was
    priced against is committed with it, so a sibling approval landing in
    between forces a re-price instead of a second full-value earning.
    """

    def __init__(
        self,
        repository: ChoreLedgerRepository,
        family_settings: FamilySettingsService,
    ) -> None:
        self.repository = repository
        self.family_settings = family_settings

    def target_effect(self, log: ChoreLog, definition: ChoreDefinition) -> Effect | None:
        """Return the (type, amount) the log should carry, or None."""
        return self._price(log, definition)[0]

    def plan(self, log: ChoreLog, definition: ChoreDefinition) -> LedgerDelta:
        """Return the delta that makes the ledger match ``log.status``."""
        return self._plan(log, definition)[0]

    def apply(
        self,
        log: ChoreLog,
        definition: ChoreDefinition,
        log_changed: bool = True,
    ) -> ReconcileResult:
        """Commit ``log`` together with its ledger delta as one unit.

        ``log.version`` must be the version it was read at. When the log
        itself is unchanged and the ledger already matches, nothing is written.
        """
        delta, pricing = self._plan(log, definition)
        if delta.is_noop and not log_changed:
            linked = (
                self.repository.get_transaction(log.ledger_transaction_id)
                if log.ledger_transaction_id is not None
                else None
            )
            return ReconcileResult(chore_log=log, transaction=linked, committed=False)

        stored, linked = self.repository.apply_chore_log_change(
            ChoreLogChange(log=log, delta=delta, pricing=pricing)
        )
        if delta.delete_transaction_id is not None:
            logger.info(
                "Removed transaction %s from chore log %s", delta.delete_transaction_id, log.id
            )
        if delta.create is not None and linked is not None:
            logger.info(
                "Posted %s %s for chore log %s (transaction %s)",
                linked.type.value,
                linked.amount,
                log.id,
                linked.id,
            )
        return ReconcileResult(
            chore_log=stored,
            transaction=linked,
            created=delta.create is not None,
            removed=delta.delete_transaction_id is not None,
        )

    def _plan(
        self, log: ChoreLog, definition: ChoreDefinition
    ) -> tuple[LedgerDelta, WeeklyPricingGuard | None]:
        effect, pricing = self._price(log, definition)
        linked_id = log.ledger_transaction_id
        linked = self.repository.get_transaction(linked_id) if linked_id is not None else None

        if effect is None:
            return LedgerDelta(delete_transaction_id=linked_id), pricing

        transaction_type, amount = effect
        account = self._account_for(str(definition.assigned_person_id))
        if linked is not None and self._matches(linked, transaction_type, amount, account):
            return LedgerDelta(), pricing

        delta = LedgerDelta(
            delete_transaction_id=linked_id,
            create=NewLedgerTransaction(
                ledger_account_id=account.id,
                person_id=account.person_id,
                amount=amount,
                type=transaction_type,
                description=self._describe(transaction_type, definition),
                transaction_date=log.log_date,
                chore_log_id=log.id,
                chore_definition_id=definition.id,
            ),
        )
        return delta, pricing

    def _price(
        self, log: ChoreLog, definition: ChoreDefinition
    ) -> tuple[Effect | None, WeeklyPricingGuard | None]:
        if definition.assigned_person_id is None:
            return None, None

        if log.status == ChoreStatus.APPROVED and definition.earn_value > 0:
            if not definition.is_weekly:
                return (TransactionType.CHORE_EARNING, round_money(definition.earn_value)), None
            amount, pricing = self._weekly_earning(log, definition)
            if amount <= ZERO:
                return None, pricing
            return (TransactionType.CHORE_EARNING, amount), pricing

        if log.status == ChoreStatus.MISSED and definition.penalty_value > 0:
            return (TransactionType.PENALTY, -round_money(definition.penalty_value)), None

        return None, None

    def _weekly_earning(
        self, log: ChoreLog, definition: ChoreDefinition
    ) -> tuple[Decimal, WeeklyPricingGuard]:
        week_start, week_end = self.family_settings.week_range_for(log.log_date)
        stored = self.repository.list_chore_logs(
            definition.id, week_start, week_end, statuses=[ChoreStatus.APPROVED]
        )
        others = [other for other in stored if other.id != log.id]
        if len(others) == len(stored):
            prior = len(others)
        else:
            prior = sum(1 for other in others if _approval_order(other) < _approval_order(log))

        pricing = WeeklyPricingGuard(
            chore_definition_id=definition.id,
            week_start=week_start,
            week_end=week_end,
            approved_count=len(others),
        )
        return completion_value(definition, prior), pricing

    def _account_for(self, person_id: str) -> LedgerAccount:
        account = default_account(self.repository.list_accounts(person_id))
        if account is None:
            raise NotFoundError("Ledger account")
        return account

    @staticmethod
    def _matches(
        linked: LedgerTransaction,
        transaction_type: TransactionType,
        amount: Decimal,
        account: LedgerAccount,
    ) -> bool:
        return (
            linked.type == transaction_type
            and linked.amount == amount
            and linked.ledger_account_id == account.id
        )

    @staticmethod
    def _describe(transaction_type: TransactionType, definition: ChoreDefinition) -> str:
        if transaction_type == TransactionType.PENALTY:
            return f"Missed: {definition.name}"
        return f"Completed: {definition.name}"


def _approval_order(log: ChoreLog) -> tuple:
    # Logs approved before approval times were recorded sort first.
    return (log.approved_at is not None, log.approved_at, log.id)
