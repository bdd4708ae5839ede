"""Scheduled weekly penalty job tests."""

from __future__ import annotations

import asyncio
import threading
from decimal import Decimal

from conftest import CHILD_ID

from app.jobs import weekly_penalty
from app.services.penalty_reconciler import LAST_RECONCILIATION_KEY


def test_job_runs_batch_off_the_event_loop(
    monkeypatch, services, repository, add_weekly_chore
) -> None:
    """The job reconciles the last completed week in a worker thread, once."""
    add_weekly_chore(earn_value=Decimal("1"))
    threads: list[threading.Thread] = []
    run = services.penalties.run

    def recording_run(*args, **kwargs):
        threads.append(threading.current_thread())
        return run(*args, **kwargs)

    monkeypatch.setattr(services.penalties, "run", recording_run)
    monkeypatch.setattr(weekly_penalty, "default_services", lambda: services)

    asyncio.run(weekly_penalty.weekly_penalty_reconciliation())
    asyncio.run(weekly_penalty.weekly_penalty_reconciliation())

    assert len(threads) == 1
    assert threads[0] is not threading.main_thread()
    assert repository.get_app_setting(LAST_RECONCILIATION_KEY) == "2026-03-08"
    assert len(repository.list_transactions(CHILD_ID)) == 1
