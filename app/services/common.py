"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Hashable
from typing import Any

import httpx
from postgrest import APIError

from app.config import settings
from app.utils.errors import NotFoundError, PersistenceError
from supabase import Client

logger = logging.getLogger(__name__)


class TTLCache:
    """Small bounded cache with per-entry expiry, safe across worker threads."""

    def __init__(self, ttl_seconds: int, max_entries: int | None = None) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max(1, max_entries or settings.data_cache_max_entries)
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any | None:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                return None
            expires_at, value = entry
            if expires_at <= now:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return

        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                oldest_key = next(iter(self._entries))
                self._entries.pop(oldest_key, None)
            self._entries[key] = (time.monotonic() + self.ttl_seconds, value)

    def invalidate(self, key: Hashable | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)


def is_unique_violation(exc: APIError) -> bool:
    """Return True when a write failed on a unique constraint."""
    message = str(getattr(exc, "message", "")).lower()
    code = str(getattr(exc, "code", "")).lower()
    return "duplicate key value" in message or code == "23505"


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query; PostgREST ``APIError`` propagates unchanged."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except httpx.HTTPError as exc:
            logger.warning("Supabase transport error: %s", exc)
            raise PersistenceError("Storage is unavailable") from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def run(self, query, default: Any = None) -> Any:
        """Execute a query, turning PostgREST errors into ``PersistenceError``."""
        try:
            return self.execute(query, default=default)
        except APIError as exc:
            message = getattr(exc, "message", None) or "Database request failed"
            raise PersistenceError(str(message)) from exc

    def select_first(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """Select a single row or return None."""
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.run(query.limit(1), default=[])
        return rows[0] if rows else None

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional equality filters."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)
        return self.run(query, default=[])

    def upsert(self, table: str, payload: dict[str, Any], on_conflict: str) -> list[dict[str, Any]]:
        """Insert or update one row keyed by ``on_conflict``."""
        return self.run(
            self.client.table(table).upsert(payload, on_conflict=on_conflict),
            default=[],
        )

    def rpc(self, function: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Call a Postgres function and return its rows."""
        rows = self.run(self.client.rpc(function, params), default=[])
        if isinstance(rows, dict):
            return [rows]
        return rows
