"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "ChoreLedgerServices": "app.services.registry",
    "ChoreLogService": "app.services.chore_log_service",
    "FamilySettingsService": "app.services.family_settings_service",
    "LedgerReconciler": "app.services.ledger_reconciler",
    "LedgerService": "app.services.ledger_service",
    "ReconciliationTransactionManager": "app.services.transaction_manager",
    "RoleService": "app.services.role_service",
    "SupabaseService": "app.services.common",
    "WeeklyPenaltyReconciler": "app.services.penalty_reconciler",
    "WeeklyProgressService": "app.services.progress_service",
    "default_services": "app.services.registry",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
