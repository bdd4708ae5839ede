"""Application settings loaded from environment variables."""

from __future__ import annotations

from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration.

    Values are read from environment variables (or a `.env` file).
    """

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_key: str
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50
    supabase_postgrest_timeout_seconds: int = 30

    # App
    app_name: str = "Chore Ledger API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"
    enable_scheduler: bool = True

    # Scheduling
    timezone: str = "UTC"
    weekly_reconciliation_hour: int = 0
    weekly_reconciliation_minute: int = 5

    # Reconciliation
    reconcile_max_retries: int = 3
    persistence_max_retries: int = 3
    persistence_retry_backoff_ms: int = 50

    # Family defaults (used until a family_settings row exists)
    default_week_start_day: str = "monday"
    default_weekly_penalty_percent: Decimal = Decimal("0.10")

    # Ledger (overridden by the cash_out_threshold app setting)
    default_cash_out_threshold: Decimal = Decimal("0")

    # Performance tuning
    auth_token_cache_ttl_seconds: int = 15
    auth_token_cache_max_entries: int = 1024
    slow_request_log_threshold_ms: int = 0
    slow_query_log_threshold_ms: int = 0
    family_settings_cache_ttl_seconds: int = 300
    role_cache_ttl_seconds: int = 30
    data_cache_max_entries: int = 5000

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
