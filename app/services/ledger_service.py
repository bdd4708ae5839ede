"""Ledger balances, transaction history and manual postings."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal, InvalidOperation

from app.config import settings
from app.repositories.base import ChoreLedgerRepository
from app.schemas.ledger import (
    AccountBalance,
    BalanceResponse,
    LedgerAccount,
    LedgerTransaction,
    NewLedgerTransaction,
    TransactionType,
)
from app.services.quota_calculator import ZERO, round_money
from app.utils.errors import InvalidInputError, NotFoundError
from app.utils.time import DateProvider

logger = logging.getLogger(__name__)

CASH_OUT_THRESHOLD_KEY = "cash_out_threshold"


class LedgerService:
    """Read balances by summing transactions; nothing is stored as a balance.

    Manual postings go through ``post_ledger_transactions`` so a debit is
    checked against the account balance in the same write.
    """

    def __init__(self, repository: ChoreLedgerRepository, dates: DateProvider) -> None:
        self.repository = repository
        self.dates = dates

    def account_balance(self, person_id: str, account_id: int) -> Decimal:
        """Return the balance of one of a person's accounts."""
        accounts = {account.id for account in self.repository.list_accounts(person_id)}
        if account_id not in accounts:
            raise NotFoundError("Ledger account")
        return sum(
            (
                transaction.amount
                for transaction in self.repository.list_transactions(person_id)
                if transaction.ledger_account_id == account_id
            ),
            Decimal("0"),
        )

    def person_balance(self, person_id: str) -> BalanceResponse:
        """Return the total over active accounts plus a per-account breakdown."""
        accounts = [
            account for account in self.repository.list_accounts(person_id) if account.is_active
        ]
        totals = {account.id: Decimal("0") for account in accounts}
        for transaction in self.repository.list_transactions(person_id):
            if transaction.ledger_account_id in totals:
                totals[transaction.ledger_account_id] += transaction.amount

        return BalanceResponse(
            person_id=person_id,
            balance=sum(totals.values(), Decimal("0")),
            accounts=[
                AccountBalance(account_id=account.id, name=account.name, balance=totals[account.id])
                for account in accounts
            ],
        )

    def list_transactions(
        self,
        person_id: str,
        start: date | None = None,
        end: date | None = None,
        limit: int | None = None,
    ) -> list[LedgerTransaction]:
        """Return transactions newest first, optionally within a date range."""
        if start is not None and end is not None and start > end:
            raise InvalidInputError("start must be on or before end")
        rows = self.repository.list_transactions(person_id, start, end)
        return rows[:limit] if limit else rows

    def cash_out_threshold(self) -> Decimal:
        value = self.repository.get_app_setting(CASH_OUT_THRESHOLD_KEY)
        if value:
            try:
                return Decimal(value)
            except InvalidOperation:
                logger.warning("Ignoring malformed %s value %r", CASH_OUT_THRESHOLD_KEY, value)
        return settings.default_cash_out_threshold

    def cash_out(
        self,
        person_id: str,
        account_id: int,
        amount: Decimal,
        notes: str | None = None,
    ) -> LedgerTransaction:
        """Pay ``amount`` out of an account the balance fully covers."""
        amount = _positive(amount)
        account = self._owned_account(person_id, account_id)
        threshold = self.cash_out_threshold()
        balance = self.account_balance(person_id, account_id)
        if balance < threshold:
            raise InvalidInputError(f"Balance must be at least {threshold} to cash out")

        description = f"Cash out: {amount}"
        if notes and notes.strip():
            description = f"{description} - {notes.strip()}"
        return self._post_one(account, -amount, TransactionType.PAYOUT, description, debit=True)

    def add_bonus(
        self, person_id: str, account_id: int, amount: Decimal, description: str
    ) -> LedgerTransaction:
        amount = _positive(amount)
        account = self._owned_account(person_id, account_id)
        text = _required_description(description)
        return self._post_one(account, amount, TransactionType.BONUS, f"Bonus: {text}")

    def add_penalty(
        self, person_id: str, account_id: int, amount: Decimal, description: str
    ) -> LedgerTransaction:
        """Deduct ``amount``; a penalty may take the balance below zero."""
        amount = _positive(amount)
        account = self._owned_account(person_id, account_id)
        text = _required_description(description)
        return self._post_one(account, -amount, TransactionType.PENALTY, f"Penalty: {text}")

    def add_adjustment(
        self, person_id: str, account_id: int, amount: Decimal, description: str
    ) -> LedgerTransaction:
        """Post a signed correction."""
        amount = round_money(amount)
        if amount == ZERO:
            raise InvalidInputError("Adjustment amount cannot be zero")
        account = self._owned_account(person_id, account_id)
        text = _required_description(description)
        kind = "Credit" if amount > ZERO else "Debit"
        return self._post_one(
            account, amount, TransactionType.ADJUSTMENT, f"Adjustment ({kind}): {text}"
        )

    def transfer(
        self,
        person_id: str,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        reason: str | None = None,
    ) -> list[LedgerTransaction]:
        """Move money from one of ``person_id``'s accounts to any active account.

        Both legs share a ``transfer_group_id`` and are written together; the
        source balance must cover the amount.
        """
        amount = _positive(amount)
        if from_account_id == to_account_id:
            raise InvalidInputError("Cannot transfer to the same account")
        source = self._owned_account(person_id, from_account_id)
        target = self.repository.get_account(to_account_id)
        if target is None:
            raise NotFoundError("Ledger account")
        _ensure_active(target)

        suffix = f": {reason.strip()}" if reason and reason.strip() else ""
        group_id = str(uuid.uuid4())
        today = self.dates.today()
        legs = [
            NewLedgerTransaction(
                ledger_account_id=source.id,
                person_id=source.person_id,
                amount=-amount,
                type=TransactionType.TRANSFER,
                description=f"Transfer to {self._label(target)}{suffix}",
                transaction_date=today,
                transfer_group_id=group_id,
            ),
            NewLedgerTransaction(
                ledger_account_id=target.id,
                person_id=target.person_id,
                amount=amount,
                type=TransactionType.TRANSFER,
                description=f"Transfer from {self._label(source)}{suffix}",
                transaction_date=today,
                transfer_group_id=group_id,
            ),
        ]
        posted = self.repository.post_ledger_transactions(legs, debit_account_id=source.id)
        logger.info(
            "Transferred %s from account %s to account %s (group %s)",
            amount,
            source.id,
            target.id,
            group_id,
        )
        return posted

    def _post_one(
        self,
        account: LedgerAccount,
        amount: Decimal,
        transaction_type: TransactionType,
        description: str,
        debit: bool = False,
    ) -> LedgerTransaction:
        entry = NewLedgerTransaction(
            ledger_account_id=account.id,
            person_id=account.person_id,
            amount=amount,
            type=transaction_type,
            description=description,
            transaction_date=self.dates.today(),
        )
        posted = self.repository.post_ledger_transactions(
            [entry], debit_account_id=account.id if debit else None
        )[0]
        logger.info(
            "Posted %s %s to account %s (transaction %s)",
            transaction_type.value,
            amount,
            account.id,
            posted.id,
        )
        return posted

    def _owned_account(self, person_id: str, account_id: int) -> LedgerAccount:
        account = self.repository.get_account(account_id)
        if account is None or account.person_id != person_id:
            raise NotFoundError("Ledger account")
        _ensure_active(account)
        return account

    def _label(self, account: LedgerAccount) -> str:
        profile = self.repository.get_profile(account.person_id)
        owner = profile.display_name if profile is not None else account.person_id
        return f"{owner}'s {account.name}"


def _positive(amount: Decimal) -> Decimal:
    amount = round_money(amount)
    if amount <= ZERO:
        raise InvalidInputError("Amount must be positive")
    return amount


def _required_description(description: str) -> str:
    text = (description or "").strip()
    if not text:
        raise InvalidInputError("Description is required")
    return text


def _ensure_active(account: LedgerAccount) -> None:
    if not account.is_active:
        raise InvalidInputError(f"Ledger account {account.id} is not active")
