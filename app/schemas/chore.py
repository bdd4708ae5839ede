"""Chore definition and occurrence log schemas."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from app.schemas.ledger import LedgerTransaction


class ChoreStatus(str, Enum):
    """Status of a chore occurrence on one day."""

    PENDING = "pending"
    COMPLETED = "completed"
    APPROVED = "approved"
    MISSED = "missed"
    SKIPPED = "skipped"
    HELP = "help"


class ScheduleKind(str, Enum):
    """How a chore recurs."""

    FIXED_DAYS = "fixed_days"
    WEEKLY_FREQUENCY = "weekly_frequency"


class ChoreDefinition(BaseModel):
    """Recurring chore template, owned by the household admin."""

    id: int
    name: str
    assigned_person_id: str | None = None
    earn_value: Decimal = Field(default=Decimal("0"), ge=0)
    penalty_value: Decimal = Field(default=Decimal("0"), ge=0)
    schedule_kind: ScheduleKind = ScheduleKind.FIXED_DAYS
    active_days: list[int] = Field(default_factory=lambda: list(range(7)))
    weekly_target_count: int = Field(default=1, ge=1)
    is_repeatable: bool = False
    auto_approve: bool = False
    is_active: bool = True
    start_date: date | None = None
    end_date: date | None = None

    @property
    def is_weekly(self) -> bool:
        return self.schedule_kind == ScheduleKind.WEEKLY_FREQUENCY

    @property
    def target_count(self) -> int:
        """Weekly target; fixed-day chores always count as one."""
        return self.weekly_target_count if self.is_weekly else 1

    def is_within_window(self, start: date, end: date | None = None) -> bool:
        """Return True when the validity window overlaps ``[start, end]``."""
        end = end or start
        if self.start_date is not None and self.start_date > end:
            return False
        if self.end_date is not None and self.end_date < start:
            return False
        return True


class ChoreLog(BaseModel):
    """One chore occurrence for one calendar date."""

    id: int
    chore_definition_id: int
    log_date: date
    status: ChoreStatus = ChoreStatus.PENDING
    completed_by: str | None = None
    completed_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    help_reason: str | None = None
    help_requested_at: datetime | None = None
    notes: str | None = None
    version: int = 0
    ledger_transaction_id: int | None = None
    created_at: datetime | None = None
    modified_at: datetime | None = None


class StatusChangeRequest(BaseModel):
    """Payload for requesting a status change."""

    desired_status: ChoreStatus
    notes: str | None = Field(default=None, max_length=1000)
    help_reason: str | None = Field(default=None, max_length=500)


class StatusChangeResponse(BaseModel):
    """Outcome of a status change request."""

    chore_log: ChoreLog
    transaction: LedgerTransaction | None = None
    changed: bool
