"""Retry boundary tests."""

from __future__ import annotations

import pytest

from app.services.transaction_manager import ReconciliationTransactionManager
from app.utils.errors import ConcurrencyConflictError, InvalidInputError, PersistenceError


class FlakyOperation:
    """Raises the queued errors in order, then returns ``"done"``."""

    def __init__(self, *errors: Exception) -> None:
        self.errors = list(errors)
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "done"


def _manager(conflicts: int = 3, persistence: int = 3) -> tuple[ReconciliationTransactionManager, list[float]]:
    delays: list[float] = []
    manager = ReconciliationTransactionManager(
        max_conflict_retries=conflicts,
        max_persistence_retries=persistence,
        backoff_seconds=0.05,
        sleep=delays.append,
    )
    return manager, delays


def test_conflicts_are_retried_until_success() -> None:
    """Version conflicts re-run the operation without sleeping."""
    manager, delays = _manager()
    operation = FlakyOperation(ConcurrencyConflictError(), ConcurrencyConflictError())

    assert manager.run(operation) == "done"
    assert operation.calls == 3
    assert delays == []


def test_conflicts_beyond_limit_raise_user_message() -> None:
    """Exhausted retries surface the refresh-and-retry conflict."""
    manager, _ = _manager(conflicts=2)
    operation = FlakyOperation(*(ConcurrencyConflictError("stale") for _ in range(5)))

    with pytest.raises(ConcurrencyConflictError) as excinfo:
        manager.run(operation)

    assert operation.calls == 3
    assert excinfo.value.message == (
        "This chore was modified concurrently. Refresh and try again."
    )
    assert excinfo.value.status_code == 409


def test_persistence_failures_back_off_exponentially() -> None:
    """Storage failures are retried with doubling delays."""
    manager, delays = _manager()
    operation = FlakyOperation(PersistenceError(), PersistenceError(), PersistenceError())

    assert manager.run(operation) == "done"
    assert delays == pytest.approx([0.05, 0.1, 0.2])


def test_persistence_failures_beyond_limit_reraise() -> None:
    """After the last retry the storage error propagates unchanged."""
    manager, delays = _manager(persistence=1)
    failure = PersistenceError("database down")
    operation = FlakyOperation(PersistenceError(), failure)

    with pytest.raises(PersistenceError) as excinfo:
        manager.run(operation)

    assert excinfo.value is failure
    assert len(delays) == 1


def test_other_errors_are_not_retried() -> None:
    """Domain errors propagate on the first attempt."""
    manager, _ = _manager()
    operation = FlakyOperation(InvalidInputError("bad"))

    with pytest.raises(InvalidInputError):
        manager.run(operation)
    assert operation.calls == 1
