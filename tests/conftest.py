"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from datetime import UTC, date, datetime, time
from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")


# Settings are read at import time by the app modules the tests import.
_set_default_env()

from app.repositories.memory_repository import InMemoryChoreLedgerRepository  # noqa: E402
from app.schemas.chore import ChoreDefinition, ScheduleKind  # noqa: E402
from app.schemas.user import Profile  # noqa: E402
from app.services.registry import ChoreLedgerServices  # noqa: E402
from app.services.transaction_manager import ReconciliationTransactionManager  # noqa: E402
from app.utils.time import DateProvider  # noqa: E402

# A Wednesday; with Monday week starts the week is 2026-03-09 .. 2026-03-15.
TODAY = date(2026, 3, 11)
PARENT_ID = "parent-1"
CHILD_ID = "child-1"


class FixedDateProvider(DateProvider):
    """Date provider pinned to one day."""

    def __init__(self, today: date) -> None:
        super().__init__("UTC")
        self.current = today

    def now(self) -> datetime:
        return datetime.combine(self.current, time(12, 0), tzinfo=UTC)

    def today(self) -> date:
        return self.current


def build_services(
    repository: Any,
    dates: DateProvider,
    max_conflict_retries: int = 3,
) -> ChoreLedgerServices:
    """Services over ``repository`` with retries that never sleep."""
    return ChoreLedgerServices(
        repository,
        dates=dates,
        transactions=ReconciliationTransactionManager(
            max_conflict_retries=max_conflict_retries,
            max_persistence_retries=2,
            backoff_seconds=0,
            sleep=lambda _: None,
        ),
    )


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from app.main import app

    return TestClient(app)


@pytest.fixture
def repository() -> InMemoryChoreLedgerRepository:
    """In-memory repository seeded with one parent and one child."""
    repo = InMemoryChoreLedgerRepository()
    repo.add_profile(Profile(id=PARENT_ID, display_name="Parent", role="parent"))
    repo.add_profile(Profile(id=CHILD_ID, display_name="Kid", role="child"))
    return repo


@pytest.fixture
def dates() -> FixedDateProvider:
    return FixedDateProvider(TODAY)


@pytest.fixture
def services(repository: InMemoryChoreLedgerRepository, dates: FixedDateProvider) -> ChoreLedgerServices:
    return build_services(repository, dates)


@pytest.fixture
def add_chore(repository: InMemoryChoreLedgerRepository) -> Callable[..., ChoreDefinition]:
    """Return a factory that stores a chore assigned to the child by default."""
    counter = iter(range(1, 1000))

    def _add(**overrides: Any) -> ChoreDefinition:
        values: dict[str, Any] = {
            "id": next(counter),
            "name": "Dishes",
            "assigned_person_id": CHILD_ID,
            "earn_value": Decimal("1.00"),
        }
        values.update(overrides)
        return repository.add_definition(ChoreDefinition(**values))

    return _add


@pytest.fixture
def add_weekly_chore(add_chore: Callable[..., ChoreDefinition]) -> Callable[..., ChoreDefinition]:
    def _add(**overrides: Any) -> ChoreDefinition:
        values: dict[str, Any] = {
            "name": "Vacuum",
            "schedule_kind": ScheduleKind.WEEKLY_FREQUENCY,
        }
        values.update(overrides)
        return add_chore(**values)

    return _add


class Actor:
    """Mutable identity used by the API client fixture."""

    def __init__(self, actor_id: str) -> None:
        self.id = actor_id


@pytest.fixture
def actor() -> Actor:
    return Actor(CHILD_ID)


@pytest.fixture
def api_client(services: ChoreLedgerServices, actor: Actor) -> Iterator[TestClient]:
    """Test client whose routes use the in-memory services and ``actor`` as caller."""
    from app.dependencies import get_actor_id, get_services
    from app.main import app

    app.dependency_overrides[get_services] = lambda: services
    app.dependency_overrides[get_actor_id] = lambda: actor.id
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
