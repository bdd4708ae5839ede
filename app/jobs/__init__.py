"""Background job modules for periodic chore ledger tasks."""

from app.jobs.weekly_penalty import weekly_penalty_reconciliation

__all__ = [
    "weekly_penalty_reconciliation",
]
