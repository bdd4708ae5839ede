"""Thread-safe in-process backend, used by tests and local tooling."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Collection, Iterable
from datetime import date
from decimal import Decimal

from app.schemas.chore import ChoreDefinition, ChoreLog, ChoreStatus
from app.schemas.ledger import (
    LedgerAccount,
    LedgerTransaction,
    NewLedgerTransaction,
    TransactionType,
)
from app.schemas.reconciliation import ChoreLogChange
from app.schemas.user import FamilySettings, Profile
from app.utils.errors import ConcurrencyConflictError, InsufficientFundsError, NotFoundError
from app.utils.time import now_utc


class InMemoryChoreLedgerRepository:
    """Keeps every table in dictionaries guarded by a single lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._log_ids = itertools.count(1)
        self._transaction_ids = itertools.count(1)
        self._account_ids = itertools.count(1)
        self.definitions: dict[int, ChoreDefinition] = {}
        self.logs: dict[int, ChoreLog] = {}
        self.transactions: dict[int, LedgerTransaction] = {}
        self.accounts: dict[int, LedgerAccount] = {}
        self.profiles: dict[str, Profile] = {}
        self.family_settings: FamilySettings | None = None
        self.app_settings: dict[str, str] = {}

    # Seeding helpers

    def add_profile(self, profile: Profile, with_account: bool = True) -> Profile:
        with self._lock:
            self.profiles[profile.id] = profile
            if with_account and not profile.is_privileged:
                self.add_account(profile.id, "Main", is_default=True)
        return profile

    def add_account(self, person_id: str, name: str, is_default: bool = False) -> LedgerAccount:
        with self._lock:
            account = LedgerAccount(
                id=next(self._account_ids),
                person_id=person_id,
                name=name,
                is_default=is_default,
            )
            self.accounts[account.id] = account
        return account

    def add_definition(self, definition: ChoreDefinition) -> ChoreDefinition:
        with self._lock:
            self.definitions[definition.id] = definition
        return definition

    def add_transaction(self, transaction: NewLedgerTransaction) -> LedgerTransaction:
        with self._lock:
            return self._insert_transaction(transaction)

    # Reads

    def get_chore_definition(self, chore_id: int) -> ChoreDefinition | None:
        return self.definitions.get(chore_id)

    def list_weekly_chores_for_person(self, person_id: str) -> list[ChoreDefinition]:
        with self._lock:
            return [
                definition
                for definition in sorted(self.definitions.values(), key=lambda d: d.id)
                if definition.is_active
                and definition.is_weekly
                and definition.assigned_person_id == person_id
            ]

    def get_chore_log(self, chore_id: int, log_date: date) -> ChoreLog | None:
        with self._lock:
            for log in self.logs.values():
                if log.chore_definition_id == chore_id and log.log_date == log_date:
                    return log
        return None

    def get_chore_log_by_id(self, log_id: int) -> ChoreLog | None:
        return self.logs.get(log_id)

    def get_or_create_chore_log(self, chore_id: int, log_date: date) -> ChoreLog:
        with self._lock:
            existing = self.get_chore_log(chore_id, log_date)
            if existing is not None:
                return existing
            log = ChoreLog(
                id=next(self._log_ids),
                chore_definition_id=chore_id,
                log_date=log_date,
                created_at=now_utc(),
            )
            self.logs[log.id] = log
            return log

    def list_chore_logs(
        self,
        chore_id: int,
        start: date,
        end: date,
        statuses: Collection[ChoreStatus] | None = None,
    ) -> list[ChoreLog]:
        with self._lock:
            return [
                log
                for log in sorted(self.logs.values(), key=lambda item: item.id)
                if log.chore_definition_id == chore_id
                and start <= log.log_date <= end
                and (statuses is None or log.status in statuses)
            ]

    def get_transaction(self, transaction_id: int) -> LedgerTransaction | None:
        return self.transactions.get(transaction_id)

    def list_transactions(
        self,
        person_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerTransaction]:
        with self._lock:
            rows = [
                transaction
                for transaction in self.transactions.values()
                if transaction.person_id == person_id
                and (start is None or transaction.transaction_date >= start)
                and (end is None or transaction.transaction_date <= end)
            ]
        return sorted(rows, key=lambda t: (t.transaction_date, t.id), reverse=True)

    def find_weekly_penalty_chore_ids(self, person_id: str, week_end: date) -> set[int]:
        with self._lock:
            return {
                transaction.chore_definition_id
                for transaction in self.transactions.values()
                if self._is_weekly_penalty(transaction, person_id, week_end)
            }

    def list_accounts(self, person_id: str) -> list[LedgerAccount]:
        with self._lock:
            return [account for account in self.accounts.values() if account.person_id == person_id]

    def get_account(self, account_id: int) -> LedgerAccount | None:
        return self.accounts.get(account_id)

    def get_profile(self, person_id: str) -> Profile | None:
        return self.profiles.get(person_id)

    def list_active_people(self) -> list[Profile]:
        with self._lock:
            return [
                profile
                for profile in self.profiles.values()
                if profile.is_active and not profile.is_privileged
            ]

    def get_family_settings(self) -> FamilySettings | None:
        return self.family_settings

    def get_app_setting(self, key: str) -> str | None:
        return self.app_settings.get(key)

    def set_app_setting(self, key: str, value: str) -> None:
        with self._lock:
            self.app_settings[key] = value

    # Atomic writes

    def apply_chore_log_change(
        self, change: ChoreLogChange
    ) -> tuple[ChoreLog, LedgerTransaction | None]:
        with self._lock:
            stored = self.logs.get(change.log.id)
            if stored is None:
                raise NotFoundError("Chore log")
            if stored.version != change.log.version:
                raise ConcurrencyConflictError()
            if change.pricing is not None:
                pricing = change.pricing
                approved = sum(
                    1
                    for log in self.logs.values()
                    if log.chore_definition_id == pricing.chore_definition_id
                    and pricing.week_start <= log.log_date <= pricing.week_end
                    and log.status == ChoreStatus.APPROVED
                    and log.id != stored.id
                )
                if approved != pricing.approved_count:
                    raise ConcurrencyConflictError()

            linked_id = stored.ledger_transaction_id
            delta = change.delta
            if delta.delete_transaction_id is not None:
                if delta.delete_transaction_id != linked_id:
                    raise ConcurrencyConflictError()
                self.transactions.pop(delta.delete_transaction_id, None)
                linked_id = None

            created: LedgerTransaction | None = None
            if delta.create is not None:
                if linked_id is not None:
                    raise ConcurrencyConflictError()
                created = self._insert_transaction(
                    delta.create.model_copy(update={"chore_log_id": stored.id})
                )
                linked_id = created.id

            updated = change.log.model_copy(
                update={
                    "version": stored.version + 1,
                    "ledger_transaction_id": linked_id,
                    "modified_at": now_utc(),
                }
            )
            self.logs[updated.id] = updated
            linked = self.transactions.get(linked_id) if linked_id is not None else None
            return updated, linked

    def post_weekly_penalties(
        self,
        person_id: str,
        week_end: date,
        penalties: list[NewLedgerTransaction],
    ) -> list[LedgerTransaction]:
        with self._lock:
            existing = {
                transaction.chore_definition_id
                for transaction in self.transactions.values()
                if self._is_weekly_penalty(transaction, person_id, week_end)
            }
            posted: list[LedgerTransaction] = []
            for penalty in penalties:
                if penalty.chore_definition_id in existing:
                    continue
                posted.append(self._insert_transaction(penalty))
                existing.add(penalty.chore_definition_id)
            return posted

    def post_ledger_transactions(
        self,
        transactions: list[NewLedgerTransaction],
        debit_account_id: int | None = None,
    ) -> list[LedgerTransaction]:
        with self._lock:
            if debit_account_id is not None:
                if debit_account_id not in self.accounts:
                    raise NotFoundError("Ledger account")
                balance = _account_total(self.transactions.values(), debit_account_id)
                net = _account_total(transactions, debit_account_id)
                if balance + net < 0:
                    raise InsufficientFundsError(required=-net, available=balance)
            return [self._insert_transaction(transaction) for transaction in transactions]

    def _insert_transaction(self, transaction: NewLedgerTransaction) -> LedgerTransaction:
        posted = LedgerTransaction(
            id=next(self._transaction_ids),
            created_at=now_utc(),
            **transaction.model_dump(),
        )
        self.transactions[posted.id] = posted
        return posted

    @staticmethod
    def _is_weekly_penalty(transaction: LedgerTransaction, person_id: str, week_end: date) -> bool:
        return (
            transaction.type == TransactionType.PENALTY
            and transaction.person_id == person_id
            and transaction.week_end_date == week_end
            and transaction.chore_definition_id is not None
        )


def _account_total(transactions: Iterable[NewLedgerTransaction], account_id: int) -> Decimal:
    return sum(
        (t.amount for t in transactions if t.ledger_account_id == account_id),
        Decimal("0"),
    )
