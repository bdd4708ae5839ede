"""Wiring of the reconciliation services around one repository."""

from __future__ import annotations

from functools import lru_cache

from app.config import settings
from app.repositories.base import ChoreLedgerRepository
from app.services.chore_log_service import ChoreLogService
from app.services.family_settings_service import FamilySettingsService
from app.services.ledger_reconciler import LedgerReconciler
from app.services.ledger_service import LedgerService
from app.services.penalty_reconciler import WeeklyPenaltyReconciler
from app.services.progress_service import WeeklyProgressService
from app.services.role_service import RoleService
from app.services.transaction_manager import ReconciliationTransactionManager
from app.utils.time import DateProvider


class ChoreLedgerServices:
    """One set of services sharing a repository, caches and clock."""

    def __init__(
        self,
        repository: ChoreLedgerRepository,
        dates: DateProvider | None = None,
        transactions: ReconciliationTransactionManager | None = None,
    ) -> None:
        self.repository = repository
        self.dates = dates or DateProvider(settings.timezone)
        self.transactions = transactions or ReconciliationTransactionManager()
        self.family_settings = FamilySettingsService(repository)
        self.roles = RoleService(repository)
        self.reconciler = LedgerReconciler(repository, self.family_settings)
        self.chore_logs = ChoreLogService(
            repository,
            self.reconciler,
            self.transactions,
            self.roles,
            self.dates,
        )
        self.progress = WeeklyProgressService(repository, self.family_settings, self.dates)
        self.penalties = WeeklyPenaltyReconciler(
            repository,
            self.family_settings,
            self.transactions,
            self.dates,
        )
        self.ledger = LedgerService(repository, self.dates)


@lru_cache
def default_services() -> ChoreLedgerServices:
    """Services backed by Supabase with the service-role client."""
    from app.repositories.supabase_repository import SupabaseChoreLedgerRepository
    from app.utils.supabase_client import get_service_client

    return ChoreLedgerServices(SupabaseChoreLedgerRepository(get_service_client()))
