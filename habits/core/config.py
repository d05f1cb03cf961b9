from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

from pydantic import AnyUrl, Field
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_env: str = Field(default="development", alias="APP_ENV")
    frontend_url: AnyUrl = Field(alias="FRONTEND_URL")
    default_timezone: str = Field(default="UTC", alias="DEFAULT_TIMEZONE")

    # Supabase (PostgREST). Callers are identified by a bare sync id, so every
    # request goes through the service-role key and is scoped by user_id filters.
    supabase_url: AnyUrl = Field(alias="SUPABASE_URL")
    supabase_service_role_key: str = Field(alias="SUPABASE_SERVICE_ROLE_KEY")

    # Observability
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")
    sentry_traces_sample_rate: float = Field(
        default=0.0, alias="SENTRY_TRACES_SAMPLE_RATE"
    )

    # Habits
    due_threshold_days: int = Field(default=2, alias="DUE_THRESHOLD_DAYS")

    # Outbound notifications / scheduled calls
    notify_webhook_url: AnyUrl | None = Field(default=None, alias="NOTIFY_WEBHOOK_URL")
    notify_webhook_token: str | None = Field(default=None, alias="NOTIFY_WEBHOOK_TOKEN")
    notify_batch_size: int = Field(default=500, alias="NOTIFY_BATCH_SIZE")
    cron_token: str | None = Field(default=None, alias="CRON_TOKEN")
    scheduled_calls_enabled: bool = Field(default=False, alias="SCHEDULED_CALLS_ENABLED")
    scheduled_calls_poll_seconds: int = Field(
        default=60, alias="SCHEDULED_CALLS_POLL_SECONDS"
    )

    @model_validator(mode="after")
    def validate_runtime_constraints(self) -> "Settings":
        env = (self.app_env or "").strip().lower()
        is_prod = env in {"production", "prod"}

        frontend_host = (urlparse(str(self.frontend_url)).hostname or "").lower()
        if is_prod and frontend_host in {"localhost", "127.0.0.1"}:
            raise ValueError(
                "Invalid FRONTEND_URL for production: localhost is not allowed. "
                "Set FRONTEND_URL to your public web domain."
            )

        supabase_host = (urlparse(str(self.supabase_url)).hostname or "").lower()
        if is_prod and supabase_host in {"localhost", "127.0.0.1"}:
            raise ValueError(
                "Invalid SUPABASE_URL for production: localhost is not allowed."
            )

        if not (1 <= self.due_threshold_days <= 30):
            raise ValueError("DUE_THRESHOLD_DAYS must be between 1 and 30")
        if not (1 <= self.notify_batch_size <= 5000):
            raise ValueError("NOTIFY_BATCH_SIZE must be 1..5000")
        if not (10 <= self.scheduled_calls_poll_seconds <= 3600):
            raise ValueError("SCHEDULED_CALLS_POLL_SECONDS must be 10..3600")

        return self

    def is_notify_configured(self) -> bool:
        return bool(self.notify_webhook_url)


settings = Settings()  # type: ignore[call-arg]  # singleton import via env settings
