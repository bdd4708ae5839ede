"""Per-person progress and ledger endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from app.dependencies import (
    ensure_can_view_person,
    get_actor_id,
    get_services,
    require_privileged,
)
from app.schemas.ledger import CashOutRequest, LedgerEntryRequest, TransferRequest
from app.services.registry import ChoreLedgerServices

router = APIRouter()


@router.get("/{person_id}/progress")
def get_weekly_summary(
    person_id: str,
    as_of: date | None = Query(default=None),
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Return all of a person's weekly chores for the week containing ``as_of``."""
    ensure_can_view_person(services, actor_id, person_id)
    summary = services.progress.get_weekly_summary(person_id, as_of)
    return {"summary": summary.model_dump(mode="json")}


@router.get("/{person_id}/chores/{chore_id}/progress")
def get_weekly_progress(
    person_id: str,
    chore_id: int,
    as_of: date | None = Query(default=None),
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Return progress of one of the person's weekly chores."""
    ensure_can_view_person(services, actor_id, person_id)
    progress = services.progress.get_weekly_progress(person_id, chore_id, as_of)
    return {"progress": progress.model_dump(mode="json")}


@router.get("/{person_id}/balance")
def get_balance(
    person_id: str,
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Return the person's balance with a per-account breakdown."""
    ensure_can_view_person(services, actor_id, person_id)
    return services.ledger.person_balance(person_id).model_dump(mode="json")


@router.get("/{person_id}/transactions")
def list_transactions(
    person_id: str,
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Return the person's ledger transactions, newest first."""
    ensure_can_view_person(services, actor_id, person_id)
    transactions = services.ledger.list_transactions(person_id, start, end, limit=limit)
    return {"transactions": [row.model_dump(mode="json") for row in transactions]}


@router.post("/{person_id}/accounts/{account_id}/cash-out")
def cash_out(
    person_id: str,
    account_id: int,
    payload: CashOutRequest,
    _: str = Depends(require_privileged),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Pay money out of one of the person's accounts."""
    transaction = services.ledger.cash_out(person_id, account_id, payload.amount, payload.notes)
    return {"transaction": transaction.model_dump(mode="json")}


@router.post("/{person_id}/accounts/{account_id}/bonuses")
def add_bonus(
    person_id: str,
    account_id: int,
    payload: LedgerEntryRequest,
    _: str = Depends(require_privileged),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    transaction = services.ledger.add_bonus(
        person_id, account_id, payload.amount, payload.description
    )
    return {"transaction": transaction.model_dump(mode="json")}


@router.post("/{person_id}/accounts/{account_id}/penalties")
def add_penalty(
    person_id: str,
    account_id: int,
    payload: LedgerEntryRequest,
    _: str = Depends(require_privileged),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    transaction = services.ledger.add_penalty(
        person_id, account_id, payload.amount, payload.description
    )
    return {"transaction": transaction.model_dump(mode="json")}


@router.post("/{person_id}/accounts/{account_id}/adjustments")
def add_adjustment(
    person_id: str,
    account_id: int,
    payload: LedgerEntryRequest,
    _: str = Depends(require_privileged),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Post a signed correction to one of the person's accounts."""
    transaction = services.ledger.add_adjustment(
        person_id, account_id, payload.amount, payload.description
    )
    return {"transaction": transaction.model_dump(mode="json")}


@router.post("/{person_id}/transfers")
def transfer(
    person_id: str,
    payload: TransferRequest,
    _: str = Depends(require_privileged),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Move money from one of the person's accounts to another account."""
    transactions = services.ledger.transfer(
        person_id,
        payload.from_account_id,
        payload.to_account_id,
        payload.amount,
        payload.reason,
    )
    return {"transactions": [row.model_dump(mode="json") for row in transactions]}
