"""Actor privilege lookups."""

from __future__ import annotations

from app.config import settings
from app.repositories.base import ChoreLedgerRepository
from app.services.common import TTLCache


class RoleService:
    """Resolve whether a user may act as a parent."""

    def __init__(self, repository: ChoreLedgerRepository, ttl_seconds: int | None = None) -> None:
        self.repository = repository
        if ttl_seconds is None:
            ttl_seconds = settings.role_cache_ttl_seconds
        self._cache = TTLCache(ttl_seconds)

    def is_privileged(self, actor_id: str) -> bool:
        """Return True for active parent profiles; unknown users are not privileged."""
        cached = self._cache.get(actor_id)
        if cached is not None:
            return cached

        profile = self.repository.get_profile(actor_id)
        privileged = bool(profile and profile.is_active and profile.is_privileged)
        self._cache.set(actor_id, privileged)
        return privileged

    def invalidate(self, actor_id: str | None = None) -> None:
        self._cache.invalidate(actor_id)
