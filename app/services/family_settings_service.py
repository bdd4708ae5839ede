"""Family-wide settings with a short-lived cache."""

from __future__ import annotations

from datetime import date, timedelta

from app.config import settings
from app.repositories.base import ChoreLedgerRepository
from app.schemas.user import FamilySettings
from app.services.common import TTLCache
from app.utils import time as time_utils

_CACHE_KEY = "family_settings"


class FamilySettingsService:
    """Read family settings and derive week windows from them."""

    def __init__(self, repository: ChoreLedgerRepository, ttl_seconds: int | None = None) -> None:
        self.repository = repository
        if ttl_seconds is None:
            ttl_seconds = settings.family_settings_cache_ttl_seconds
        self._cache = TTLCache(ttl_seconds, max_entries=1)

    def get(self) -> FamilySettings:
        cached = self._cache.get(_CACHE_KEY)
        if cached is not None:
            return cached

        family = self.repository.get_family_settings()
        if family is None:
            family = FamilySettings(
                week_start_day=settings.default_week_start_day,
                weekly_incomplete_penalty_percent=settings.default_weekly_penalty_percent,
            )
        self._cache.set(_CACHE_KEY, family)
        return family

    def invalidate(self) -> None:
        self._cache.invalidate()

    def week_start_for(self, base: date) -> date:
        return time_utils.week_start_for(base, self.get().week_start_day)

    def week_end_for(self, base: date) -> date:
        return self.week_start_for(base) + timedelta(days=6)

    def week_range_for(self, base: date) -> tuple[date, date]:
        return time_utils.week_range_for(base, self.get().week_start_day)

    def last_completed_week_range(self, base: date) -> tuple[date, date]:
        """Range of the most recent week that ended before ``base``."""
        return time_utils.last_completed_week_range(base, self.get().week_start_day)
