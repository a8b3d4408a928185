"""Pydantic models for notification preferences and user settings."""

from __future__ import annotations

from datetime import time

from pydantic import BaseModel, Field, field_validator, model_validator

from notifier.domain.entities import NotificationType
from notifier.utils import is_known_timezone


class PreferenceRead(BaseModel):
    type: NotificationType
    email_enabled: bool
    push_enabled: bool
    in_app_enabled: bool


class PreferenceUpdate(BaseModel):
    email_enabled: bool = True
    push_enabled: bool = True
    in_app_enabled: bool = True


class SettingsRead(BaseModel):
    notifications_enabled: bool
    quiet_hours_enabled: bool
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    timezone: str


class SettingsUpdate(BaseModel):
    """Payload accepted by ``PUT /preferences/settings``."""

    notifications_enabled: bool = True
    quiet_hours_enabled: bool = False
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    timezone: str = Field(default="UTC", min_length=1, max_length=64)

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        value = value.strip()
        if not is_known_timezone(value):
            raise ValueError(f"Unknown timezone '{value}'")
        return value

    @model_validator(mode="after")
    def _validate_quiet_hours(self) -> "SettingsUpdate":
        if self.quiet_hours_enabled:
            if self.quiet_hours_start is None or self.quiet_hours_end is None:
                raise ValueError("Quiet hours need both a start and an end time")
            if self.quiet_hours_start == self.quiet_hours_end:
                raise ValueError("Quiet hours start and end must differ")
        return self


__all__ = ["PreferenceRead", "PreferenceUpdate", "SettingsRead", "SettingsUpdate"]
