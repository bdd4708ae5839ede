"""Status changes on chore occurrences, with their ledger effects."""

from __future__ import annotations

import logging
from datetime import date

from app.repositories.base import ChoreLedgerRepository
from app.schemas.chore import ChoreDefinition, ChoreLog, ChoreStatus, StatusChangeResponse
from app.schemas.reconciliation import ReconcileResult
from app.services.ledger_reconciler import LedgerReconciler
from app.services.role_service import RoleService
from app.services.schedule_service import is_due
from app.services.status_machine import actor_role, apply_transition, resolve_transition
from app.services.transaction_manager import ReconciliationTransactionManager
from app.utils.errors import InvalidInputError, NotAuthorizedError, NotFoundError
from app.utils.time import DateProvider

logger = logging.getLogger(__name__)


class ChoreLogService:
    """Entry point for changing a chore occurrence's status."""

    def __init__(
        self,
        repository: ChoreLedgerRepository,
        reconciler: LedgerReconciler,
        transactions: ReconciliationTransactionManager,
        roles: RoleService,
        dates: DateProvider,
    ) -> None:
        self.repository = repository
        self.reconciler = reconciler
        self.transactions = transactions
        self.roles = roles
        self.dates = dates

    def get_definition(self, chore_id: int) -> ChoreDefinition:
        definition = self.repository.get_chore_definition(chore_id)
        if definition is None:
            raise NotFoundError("Chore")
        return definition

    def get_log(self, chore_id: int, log_date: date) -> ChoreLog:
        """Return the stored log for a chore and date."""
        self.get_definition(chore_id)
        log = self.repository.get_chore_log(chore_id, log_date)
        if log is None:
            raise NotFoundError("Chore log")
        return log

    def request_status_change(
        self,
        chore_id: int,
        log_date: date,
        actor_id: str,
        desired_status: ChoreStatus,
        notes: str | None = None,
        help_reason: str | None = None,
    ) -> StatusChangeResponse:
        """Move a chore occurrence toward ``desired_status``.

        The log is created on first use. The new status, its audit fields and
        the matching ledger mutation are committed together; on a version
        conflict the whole request is re-evaluated against the fresh log.
        Requesting the status the log already has changes nothing.
        """
        definition = self.get_definition(chore_id)
        privileged = self.roles.is_privileged(actor_id)
        if not privileged and log_date != self.dates.today():
            raise NotAuthorizedError("Only today's chores can be changed")
        if not is_due(definition, log_date):
            raise InvalidInputError(f"{definition.name} is not scheduled on {log_date.isoformat()}")
        if desired_status == ChoreStatus.HELP and not (help_reason and help_reason.strip()):
            raise InvalidInputError("A reason is required when asking for help")

        role = actor_role(actor_id, definition, privileged)

        def attempt() -> StatusChangeResponse:
            log = self.repository.get_or_create_chore_log(chore_id, log_date)
            target = resolve_transition(log.status, desired_status, role, definition.auto_approve)
            if target == log.status:
                linked = (
                    self.repository.get_transaction(log.ledger_transaction_id)
                    if log.ledger_transaction_id is not None
                    else None
                )
                return StatusChangeResponse(chore_log=log, transaction=linked, changed=False)

            updated = apply_transition(
                log,
                target,
                actor_id=actor_id,
                role=role,
                now=self.dates.now(),
                notes=notes,
                help_reason=help_reason,
            )
            result = self.reconciler.apply(updated, definition)
            logger.info(
                "Chore log %s moved %s -> %s by %s",
                log.id,
                log.status.value,
                target.value,
                actor_id,
            )
            return StatusChangeResponse(
                chore_log=result.chore_log,
                transaction=result.transaction,
                changed=True,
            )

        return self.transactions.run(attempt, label=f"chore {chore_id} on {log_date.isoformat()}")

    def reconcile_log(self, chore_id: int, log_date: date) -> ReconcileResult:
        """Repair the ledger link of an existing log without changing its status."""
        definition = self.get_definition(chore_id)

        def attempt() -> ReconcileResult:
            log = self.repository.get_chore_log(chore_id, log_date)
            if log is None:
                raise NotFoundError("Chore log")
            return self.reconciler.apply(log, definition, log_changed=False)

        return self.transactions.run(attempt, label=f"repair chore {chore_id} on {log_date.isoformat()}")
