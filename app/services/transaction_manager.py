"""Retry boundary around reconciliation units of work."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from app.config import settings
from app.utils.errors import ConcurrencyConflictError, PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReconciliationTransactionManager:
    """Run an operation, re-running it on version conflicts and storage hiccups.

    The operation must re-read everything it depends on, since a retry
    starts over from fresh state. Version conflicts are retried immediately;
    persistence failures back off exponentially. Other errors propagate on
    the first attempt.
    """

    def __init__(
        self,
        max_conflict_retries: int | None = None,
        max_persistence_retries: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_conflict_retries = (
            settings.reconcile_max_retries if max_conflict_retries is None else max_conflict_retries
        )
        self.max_persistence_retries = (
            settings.persistence_max_retries
            if max_persistence_retries is None
            else max_persistence_retries
        )
        self.backoff_seconds = (
            settings.persistence_retry_backoff_ms / 1000
            if backoff_seconds is None
            else backoff_seconds
        )
        self._sleep = sleep

    def run(self, operation: Callable[[], T], label: str = "reconciliation") -> T:
        conflicts = 0
        failures = 0
        while True:
            try:
                return operation()
            except ConcurrencyConflictError as exc:
                if conflicts >= self.max_conflict_retries:
                    logger.warning("%s: giving up after %d conflict(s)", label, conflicts + 1)
                    raise ConcurrencyConflictError() from exc
                conflicts += 1
                logger.info("%s: version conflict, retry %d", label, conflicts)
            except PersistenceError:
                if failures >= self.max_persistence_retries:
                    logger.error("%s: storage failed after %d attempt(s)", label, failures + 1)
                    raise
                delay = self.backoff_seconds * (2**failures)
                failures += 1
                logger.warning(
                    "%s: storage failure, retry %d in %.3fs", label, failures, delay
                )
                self._sleep(delay)
