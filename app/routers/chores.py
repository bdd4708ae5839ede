"""Chore occurrence endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_actor_id, get_services, require_privileged
from app.schemas.chore import StatusChangeRequest
from app.services.registry import ChoreLedgerServices

router = APIRouter()


@router.get("/{chore_id}/logs/{log_date}")
def get_chore_log(
    chore_id: int,
    log_date: date,
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Return the log of a chore on one date."""
    log = services.chore_logs.get_log(chore_id, log_date)
    return {"chore_log": log.model_dump(mode="json")}


@router.post("/{chore_id}/logs/{log_date}/status")
def change_status(
    chore_id: int,
    log_date: date,
    payload: StatusChangeRequest,
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Request a status change; the ledger follows in the same unit of work."""
    result = services.chore_logs.request_status_change(
        chore_id,
        log_date,
        actor_id=actor_id,
        desired_status=payload.desired_status,
        notes=payload.notes,
        help_reason=payload.help_reason,
    )
    return result.model_dump(mode="json")


@router.post("/{chore_id}/logs/{log_date}/reconcile")
def reconcile_log(
    chore_id: int,
    log_date: date,
    _: str = Depends(require_privileged),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Repair the ledger link of a log without touching its status."""
    result = services.chore_logs.reconcile_log(chore_id, log_date)
    return result.model_dump(mode="json")


@router.get("/{chore_id}/progress")
def get_chore_progress(
    chore_id: int,
    as_of: date | None = Query(default=None),
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Return weekly progress of a quota-based chore."""
    progress = services.progress.get_chore_progress(chore_id, as_of)
    return {"progress": progress.model_dump(mode="json")}
