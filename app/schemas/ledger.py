"""Ledger schemas."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class TransactionType(str, Enum):
    """Kind of ledger entry."""

    CHORE_EARNING = "chore_earning"
    PENALTY = "penalty"
    BONUS = "bonus"
    PAYOUT = "payout"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"


class LedgerAccount(BaseModel):
    """A named sub-account belonging to one person."""

    id: int
    person_id: str
    name: str
    is_default: bool = False
    is_active: bool = True


class NewLedgerTransaction(BaseModel):
    """A ledger entry that has not been posted yet."""

    ledger_account_id: int
    person_id: str
    amount: Decimal
    type: TransactionType
    description: str
    transaction_date: date
    chore_log_id: int | None = None
    chore_definition_id: int | None = None
    week_end_date: date | None = None
    transfer_group_id: str | None = None


class LedgerTransaction(NewLedgerTransaction):
    """A posted, immutable ledger entry."""

    id: int
    created_at: datetime | None = None


class AccountBalance(BaseModel):
    """Balance of a single account."""

    account_id: int
    name: str
    balance: Decimal


class BalanceResponse(BaseModel):
    """Person balance derived from the transaction set."""

    person_id: str
    balance: Decimal
    accounts: list[AccountBalance] = []


class CashOutRequest(BaseModel):
    """Pay money out of an account."""

    amount: Decimal
    notes: str | None = None


class LedgerEntryRequest(BaseModel):
    """Manual bonus, penalty or adjustment on one account."""

    amount: Decimal
    description: str


class TransferRequest(BaseModel):
    """Move money from one of a person's accounts to any other account."""

    from_account_id: int
    to_account_id: int
    amount: Decimal
    reason: str | None = None
