"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.jobs.weekly_penalty import weekly_penalty_reconciliation

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    # Runs daily so a missed week boundary is caught up on the next day.
    if scheduler.get_job("weekly_penalty_reconciliation") is None:
        scheduler.add_job(
            weekly_penalty_reconciliation,
            CronTrigger(
                hour=settings.weekly_reconciliation_hour,
                minute=settings.weekly_reconciliation_minute,
                timezone=settings.timezone,
            ),
            id="weekly_penalty_reconciliation",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
