"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Configuration values loaded from environment variables.

    The instance is immutable; workers and the event trigger layer receive
    it through their constructors instead of reading the environment.
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding=ENV_FILE_ENCODING,
        extra="ignore",
        frozen=True,
    )

    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by SQLAlchemy",
        min_length=1,
    )
    secret_key: str = Field(
        default="change-me",
        description="Secret key used to verify bearer tokens",
        min_length=1,
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    log_level: str = Field(default="INFO", description="Root log level")

    app_base_url: str = Field(
        default="https://www.getconpanion.com",
        description="Public URL used to build links inside emails and push payloads",
    )

    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending notification emails",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notifications",
        min_length=3,
    )
    sendgrid_sender_name: str = Field(
        default="Conpanion",
        description="Display name paired with the sender address",
    )

    vapid_public_key: str | None = Field(
        default=None,
        description="VAPID public key handed to browsers as the applicationServerKey",
    )
    vapid_private_key: str | None = Field(
        default=None,
        description="VAPID private key used to sign Web Push requests",
    )
    vapid_claims_email: str = Field(
        default="mailto:notifications@getconpanion.com",
        description="Contact URI sent in the VAPID ``sub`` claim",
    )

    max_retries: int = Field(default=3, ge=0, description="Retries before a task fails")
    retry_base_delay_seconds: int = Field(
        default=60, gt=0, description="First retry delay; doubles on every attempt"
    )
    claim_batch_size: int = Field(default=10, gt=0)
    processing_timeout_seconds: int = Field(
        default=300,
        gt=0,
        description="Age after which a processing task is considered abandoned",
    )
    transport_timeout_seconds: float = Field(default=30.0, gt=0)

    scheduler_enabled: bool = Field(default=False)
    email_drain_interval_seconds: int = Field(default=300, gt=0)
    push_drain_interval_seconds: int = Field(default=120, gt=0)
    worker_threads: int = Field(default=2, gt=0)
    drain_queue_size: int = Field(default=8, gt=0)

    purge_read_after_days: int = Field(default=30, gt=0)
    purge_unread_after_days: int = Field(default=90, gt=0)
    purge_terminal_after_days: int = Field(default=7, gt=0)

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self

    @property
    def email_enabled(self) -> bool:
        return bool(self.sendgrid_api_key and self.sendgrid_sender)

    @property
    def push_enabled(self) -> bool:
        return bool(self.vapid_private_key)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
