"""Supabase (PostgREST) backend for the chore ledger."""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import date
from decimal import Decimal

from postgrest import APIError

from app.schemas.chore import ChoreDefinition, ChoreLog, ChoreStatus
from app.schemas.ledger import (
    LedgerAccount,
    LedgerTransaction,
    NewLedgerTransaction,
    TransactionType,
)
from app.schemas.reconciliation import ChoreLogChange
from app.schemas.user import FamilySettings, Profile
from app.services.common import SupabaseService, is_unique_violation
from app.utils.errors import (
    ConcurrencyConflictError,
    InsufficientFundsError,
    NotFoundError,
    PersistenceError,
)
from supabase import Client

logger = logging.getLogger(__name__)

LOG_WRITE_FIELDS = (
    "id",
    "version",
    "status",
    "completed_by",
    "completed_at",
    "approved_by",
    "approved_at",
    "help_reason",
    "help_requested_at",
    "notes",
)


class SupabaseChoreLedgerRepository:
    """Reads through PostgREST; atomic writes go through Postgres functions."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def get_chore_definition(self, chore_id: int) -> ChoreDefinition | None:
        row = self.db.select_first("chore_definitions", {"id": chore_id})
        return ChoreDefinition.model_validate(row) if row else None

    def list_weekly_chores_for_person(self, person_id: str) -> list[ChoreDefinition]:
        rows = self.db.select_many(
            "chore_definitions",
            filters={
                "assigned_person_id": person_id,
                "schedule_kind": "weekly_frequency",
                "is_active": True,
            },
            order_by="id",
        )
        return [ChoreDefinition.model_validate(row) for row in rows]

    def get_chore_log(self, chore_id: int, log_date: date) -> ChoreLog | None:
        row = self.db.select_first(
            "chore_logs",
            {"chore_definition_id": chore_id, "log_date": log_date.isoformat()},
        )
        return ChoreLog.model_validate(row) if row else None

    def get_chore_log_by_id(self, log_id: int) -> ChoreLog | None:
        row = self.db.select_first("chore_logs", {"id": log_id})
        return ChoreLog.model_validate(row) if row else None

    def get_or_create_chore_log(self, chore_id: int, log_date: date) -> ChoreLog:
        existing = self.get_chore_log(chore_id, log_date)
        if existing is not None:
            return existing

        payload = {
            "chore_definition_id": chore_id,
            "log_date": log_date.isoformat(),
            "status": ChoreStatus.PENDING.value,
        }
        try:
            rows = self.db.execute(self.db.client.table("chore_logs").insert(payload), default=[])
        except APIError as exc:
            if not is_unique_violation(exc):
                raise PersistenceError(str(getattr(exc, "message", exc))) from exc
            # Another worker created it first.
            rows = []

        if rows:
            return ChoreLog.model_validate(rows[0])
        created = self.get_chore_log(chore_id, log_date)
        if created is None:
            raise PersistenceError("Failed to create chore log")
        return created

    def list_chore_logs(
        self,
        chore_id: int,
        start: date,
        end: date,
        statuses: Collection[ChoreStatus] | None = None,
    ) -> list[ChoreLog]:
        query = (
            self.db.client.table("chore_logs")
            .select("*")
            .eq("chore_definition_id", chore_id)
            .gte("log_date", start.isoformat())
            .lte("log_date", end.isoformat())
        )
        if statuses is not None:
            query = query.in_("status", [status.value for status in statuses])
        rows = self.db.run(query.order("id"), default=[])
        return [ChoreLog.model_validate(row) for row in rows]

    def get_transaction(self, transaction_id: int) -> LedgerTransaction | None:
        row = self.db.select_first("ledger_transactions", {"id": transaction_id})
        return LedgerTransaction.model_validate(row) if row else None

    def list_transactions(
        self,
        person_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[LedgerTransaction]:
        query = self.db.client.table("ledger_transactions").select("*").eq("person_id", person_id)
        if start is not None:
            query = query.gte("transaction_date", start.isoformat())
        if end is not None:
            query = query.lte("transaction_date", end.isoformat())
        rows = self.db.run(
            query.order("transaction_date", desc=True).order("id", desc=True),
            default=[],
        )
        return [LedgerTransaction.model_validate(row) for row in rows]

    def find_weekly_penalty_chore_ids(self, person_id: str, week_end: date) -> set[int]:
        rows = self.db.run(
            self.db.client.table("ledger_transactions")
            .select("chore_definition_id")
            .eq("person_id", person_id)
            .eq("type", TransactionType.PENALTY.value)
            .eq("week_end_date", week_end.isoformat())
            .not_.is_("chore_definition_id", "null"),
            default=[],
        )
        return {int(row["chore_definition_id"]) for row in rows}

    def list_accounts(self, person_id: str) -> list[LedgerAccount]:
        rows = self.db.select_many("ledger_accounts", filters={"person_id": person_id}, order_by="id")
        return [LedgerAccount.model_validate(row) for row in rows]

    def get_account(self, account_id: int) -> LedgerAccount | None:
        row = self.db.select_first("ledger_accounts", {"id": account_id})
        return LedgerAccount.model_validate(row) if row else None

    def get_profile(self, person_id: str) -> Profile | None:
        row = self.db.select_first("profiles", {"id": person_id})
        return Profile.model_validate(row) if row else None

    def list_active_people(self) -> list[Profile]:
        rows = self.db.select_many(
            "profiles",
            filters={"is_active": True, "role": "child"},
            order_by="display_name",
        )
        return [Profile.model_validate(row) for row in rows]

    def get_family_settings(self) -> FamilySettings | None:
        rows = self.db.select_many("family_settings", order_by="id", limit=1)
        return FamilySettings.model_validate(rows[0]) if rows else None

    def get_app_setting(self, key: str) -> str | None:
        row = self.db.select_first("app_settings", {"key": key})
        return str(row["value"]) if row and row.get("value") is not None else None

    def set_app_setting(self, key: str, value: str) -> None:
        self.db.upsert("app_settings", {"key": key, "value": value}, on_conflict="key")

    def apply_chore_log_change(
        self, change: ChoreLogChange
    ) -> tuple[ChoreLog, LedgerTransaction | None]:
        log_payload = change.log.model_dump(mode="json", include=set(LOG_WRITE_FIELDS))
        new_transaction = (
            change.delta.create.model_dump(mode="json") if change.delta.create else None
        )
        rows = self.db.rpc(
            "apply_chore_log_change",
            {
                "p_log": log_payload,
                "p_delete_transaction_id": change.delta.delete_transaction_id,
                "p_new_transaction": new_transaction,
                "p_pricing": change.pricing.model_dump(mode="json") if change.pricing else None,
            },
        )
        if not rows:
            raise PersistenceError("Chore log update returned no result")

        payload = rows[0]
        if not payload.get("success"):
            self._raise_for_reason(str(payload.get("reason") or ""))

        log = ChoreLog.model_validate(payload["chore_log"])
        transaction_row = payload.get("ledger_transaction")
        transaction = LedgerTransaction.model_validate(transaction_row) if transaction_row else None
        return log, transaction

    def post_weekly_penalties(
        self,
        person_id: str,
        week_end: date,
        penalties: list[NewLedgerTransaction],
    ) -> list[LedgerTransaction]:
        if not penalties:
            return []
        rows = self.db.rpc(
            "post_weekly_penalties",
            {
                "p_person_id": person_id,
                "p_week_end_date": week_end.isoformat(),
                "p_penalties": [penalty.model_dump(mode="json") for penalty in penalties],
            },
        )
        return [LedgerTransaction.model_validate(row) for row in rows]

    def post_ledger_transactions(
        self,
        transactions: list[NewLedgerTransaction],
        debit_account_id: int | None = None,
    ) -> list[LedgerTransaction]:
        if not transactions:
            return []
        rows = self.db.rpc(
            "post_ledger_transactions",
            {
                "p_transactions": [row.model_dump(mode="json") for row in transactions],
                "p_debit_account_id": debit_account_id,
            },
        )
        if not rows:
            raise PersistenceError("Ledger posting returned no result")

        payload = rows[0]
        if not payload.get("success"):
            reason = str(payload.get("reason") or "")
            if reason == "insufficient_funds":
                net = sum(
                    (t.amount for t in transactions if t.ledger_account_id == debit_account_id),
                    Decimal("0"),
                )
                logger.info("Ledger posting rejected: %s", reason)
                raise InsufficientFundsError(
                    required=-net, available=Decimal(str(payload.get("available") or 0))
                )
            if reason == "account_not_found":
                raise NotFoundError("Ledger account")
            raise PersistenceError("Ledger posting failed")
        return [LedgerTransaction.model_validate(row) for row in payload.get("transactions") or []]

    @staticmethod
    def _raise_for_reason(reason: str) -> None:
        if reason in {
            "version_conflict",
            "pricing_conflict",
            "transaction_mismatch",
            "transaction_already_linked",
        }:
            logger.info("Chore log write rejected: %s", reason)
            raise ConcurrencyConflictError()
        if reason == "log_not_found":
            raise NotFoundError("Chore log")
        raise PersistenceError("Chore log update failed")
