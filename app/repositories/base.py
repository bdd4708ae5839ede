"""Storage contract shared by the Supabase and in-memory backends."""

from __future__ import annotations

from collections.abc import Collection
from datetime import date
from typing import Protocol

from app.schemas.chore import ChoreDefinition, ChoreLog, ChoreStatus
from app.schemas.ledger import LedgerAccount, LedgerTransaction, NewLedgerTransaction
from app.schemas.reconciliation import ChoreLogChange
from app.schemas.user import FamilySettings, Profile


class ChoreLedgerRepository(Protocol):
    """Persistence operations used by the reconciliation engine.

    Reads never lock. The write paths, ``apply_chore_log_change``,
    ``post_weekly_penalties`` and ``post_ledger_transactions``, are each atomic.
    """

    def get_chore_definition(self, chore_id: int) -> ChoreDefinition | None: ...

    def list_weekly_chores_for_person(self, person_id: str) -> list[ChoreDefinition]: ...

    def get_chore_log(self, chore_id: int, log_date: date) -> ChoreLog | None: ...

    def get_chore_log_by_id(self, log_id: int) -> ChoreLog | None: ...

    def get_or_create_chore_log(self, chore_id: int, log_date: date) -> ChoreLog: ...

    def list_chore_logs(
        self,
        chore_id: int,
        start: date,
        end: date,
        statuses: Collection[ChoreStatus] | None = None,
    ) -> list[ChoreLog]: ...

    def get_transaction(self, transaction_id: int) -> LedgerTransaction | None: ...

    def list_transactions(
        self,
        person_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerTransaction]: ...

    def find_weekly_penalty_chore_ids(self, person_id: str, week_end: date) -> set[int]: ...

    def list_accounts(self, person_id: str) -> list[LedgerAccount]: ...

    def get_account(self, account_id: int) -> LedgerAccount | None: ...

    def get_profile(self, person_id: str) -> Profile | None: ...

    def list_active_people(self) -> list[Profile]: ...

    def get_family_settings(self) -> FamilySettings | None: ...

    def get_app_setting(self, key: str) -> str | None: ...

    def set_app_setting(self, key: str, value: str) -> None: ...

    def apply_chore_log_change(
        self, change: ChoreLogChange
    ) -> tuple[ChoreLog, LedgerTransaction | None]:
        """Commit a log update and its ledger delta, or nothing.

        Raises ``ConcurrencyConflictError`` when the stored version is not
        ``change.log.version``. Returns the stored log (version bumped) and
        the transaction linked to it afterwards.
        """
        ...

    def post_weekly_penalties(
        self,
        person_id: str,
        week_end: date,
        penalties: list[NewLedgerTransaction],
    ) -> list[LedgerTransaction]:
        """Insert penalties not already present for (person, chore, week end).

        Returns only the rows inserted by this call.
        """
        ...

    def post_ledger_transactions(
        self,
        transactions: list[NewLedgerTransaction],
        debit_account_id: int | None = None,
    ) -> list[LedgerTransaction]:
        """Insert manual entries together, or none of them.

        With ``debit_account_id`` set, raises ``InsufficientFundsError`` when
        the batch would take that account's balance below zero.
        """
        ...


def default_account(accounts: list[LedgerAccount]) -> LedgerAccount | None:
    """Pick the default active account, falling back to any active one."""
    active = [account for account in accounts if account.is_active]
    for account in active:
        if account.is_default:
            return account
    return active[0] if active else None
