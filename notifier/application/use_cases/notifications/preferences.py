"""Use cases for reading and updating notification preferences."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import time

from sqlalchemy.orm import Session

from notifier.domain.entities import (
    NotificationPreference,
    NotificationSettings,
    NotificationType,
)
from notifier.infrastructure.repositories import PreferenceRepository


def list_preferences(session: Session, *, user_id: int) -> Sequence[NotificationPreference]:
    """Return one preference per notification type, defaults included."""

    stored = {
        preference.type: preference
        for preference in PreferenceRepository(session).list_preferences(user_id)
    }
    return [
        stored.get(notification_type)
        or NotificationPreference(id=None, user_id=user_id, type=notification_type)
        for notification_type in NotificationType
    ]


def update_preference(
    session: Session,
    *,
    user_id: int,
    notification_type: NotificationType,
    email_enabled: bool,
    push_enabled: bool,
    in_app_enabled: bool,
) -> NotificationPreference:
    saved = PreferenceRepository(session).save_preference(
        NotificationPreference(
            id=None,
            user_id=user_id,
            type=notification_type,
            email_enabled=email_enabled,
            push_enabled=push_enabled,
            in_app_enabled=in_app_enabled,
        )
    )
    session.commit()
    return saved


def get_notification_settings(session: Session, *, user_id: int) -> NotificationSettings:
    stored = PreferenceRepository(session).get_settings(user_id)
    return stored or NotificationSettings(id=None, user_id=user_id)


def update_notification_settings(
    session: Session,
    *,
    user_id: int,
    notifications_enabled: bool,
    quiet_hours_enabled: bool,
    quiet_hours_start: time | None,
    quiet_hours_end: time | None,
    timezone: str,
) -> NotificationSettings:
    saved = PreferenceRepository(session).save_settings(
        NotificationSettings(
            id=None,
            user_id=user_id,
            notifications_enabled=notifications_enabled,
            quiet_hours_enabled=quiet_hours_enabled,
            quiet_hours_start=quiet_hours_start,
            quiet_hours_end=quiet_hours_end,
            timezone=timezone,
        )
    )
    session.commit()
    return saved


__all__ = [
    "get_notification_settings",
    "list_preferences",
    "update_notification_settings",
    "update_preference",
]
