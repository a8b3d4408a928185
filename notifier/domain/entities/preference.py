"""Domain entities describing how a user wants to be notified."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from .notification import NotificationType


@dataclass
class NotificationPreference:
    """Per-type channel switches for a single user.

    A missing preference means every channel is enabled for that type.
    """

    id: int | None
    user_id: int
    type: NotificationType
    email_enabled: bool = True
    push_enabled: bool = True
    in_app_enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class NotificationSettings:
    """User-wide switches: global kill switch and quiet hours."""

    id: int | None
    user_id: int
    notifications_enabled: bool = True
    quiet_hours_enabled: bool = False
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    timezone: str = "UTC"
    updated_at: datetime | None = None

    @property
    def has_quiet_hours(self) -> bool:
        return (
            self.quiet_hours_enabled
            and self.quiet_hours_start is not None
            and self.quiet_hours_end is not None
        )


__all__ = ["NotificationPreference", "NotificationSettings"]
