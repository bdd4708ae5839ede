"""Weekly penalty reconciliation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_actor_id, get_services, require_privileged
from app.schemas.reconciliation import WeeklyReconciliationRequest
from app.services.registry import ChoreLedgerServices

router = APIRouter()


@router.get("/weekly")
def get_weekly_status(
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Return when weekly penalties were last applied."""
    return services.penalties.status().model_dump(mode="json")


@router.post("/weekly")
def run_weekly(
    payload: WeeklyReconciliationRequest | None = None,
    _: str = Depends(require_privileged),
    services: ChoreLedgerServices = Depends(get_services),
) -> dict:
    """Apply weekly penalties now; safe to repeat for the same week."""
    results = services.penalties.run(payload.week_end_date if payload else None)
    return {"results": [result.model_dump(mode="json") for result in results]}
