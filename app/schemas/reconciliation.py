"""Reconciliation unit-of-work and weekly penalty schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field

from app.schemas.chore import ChoreLog
from app.schemas.ledger import LedgerTransaction, NewLedgerTransaction


class LedgerDelta(BaseModel):
    """Ledger mutation needed to make a log's linked transaction match its status."""

    delete_transaction_id: int | None = None
    create: NewLedgerTransaction | None = None

    @property
    def is_noop(self) -> bool:
        return self.delete_transaction_id is None and self.create is None


class WeeklyPricingGuard(BaseModel):
    """How many other approved logs a weekly completion was priced against."""

    chore_definition_id: int
    week_start: date
    week_end: date
    approved_count: int


class ChoreLogChange(BaseModel):
    """Everything committed atomically for one chore log.

    ``log.version`` is the version the change was computed from; storage
    rejects the change when the stored version differs. With ``pricing``
    set, storage also rejects it when the number of other approved logs of
    the chore in that week has changed.
    """

    log: ChoreLog
    delta: LedgerDelta = Field(default_factory=LedgerDelta)
    pricing: WeeklyPricingGuard | None = None


class ReconcileResult(BaseModel):
    """Committed state of a chore log and its linked transaction."""

    chore_log: ChoreLog
    transaction: LedgerTransaction | None = None
    created: bool = False
    removed: bool = False
    committed: bool = True


class IncompleteChoreRecord(BaseModel):
    """A weekly chore that missed its quota and was penalised."""

    chore_definition_id: int
    chore_name: str
    target_count: int
    completed_count: int
    penalty_amount: Decimal

    @computed_field
    @property
    def missed_count(self) -> int:
        return self.target_count - self.completed_count


class WeeklyReconciliationResult(BaseModel):
    """Penalty outcome for one person and one week."""

    person_id: str
    display_name: str
    week_start: date
    week_end: date
    incomplete_chores: list[IncompleteChoreRecord] = []
    already_reconciled_chore_ids: list[int] = []
    total_penalty: Decimal = Decimal("0")

    @computed_field
    @property
    def had_penalties(self) -> bool:
        return len(self.incomplete_chores) > 0


class WeeklyReconciliationRequest(BaseModel):
    """Manual trigger payload; defaults to the last completed week."""

    week_end_date: date | None = None


class WeeklyReconciliationStatus(BaseModel):
    """When the weekly penalty batch last ran."""

    last_reconciled_week_end: date | None = None
    previous_week_end: date
    reconciliation_needed: bool
