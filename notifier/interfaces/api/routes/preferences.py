"""Endpoints to manage per-type channel preferences and quiet hours."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from notifier.application.use_cases.notifications import (
    get_notification_settings,
    list_preferences as list_preferences_uc,
    update_notification_settings,
    update_preference as update_preference_uc,
)
from notifier.domain.entities import (
    NotificationPreference,
    NotificationSettings,
    NotificationType,
    Recipient,
)
from notifier.infrastructure.database import get_db
from notifier.interfaces.api.dependencies import get_current_user
from notifier.interfaces.api.schemas import (
    PreferenceRead,
    PreferenceUpdate,
    SettingsRead,
    SettingsUpdate,
)

router = APIRouter(prefix="/preferences", tags=["preferences"])


def _preference_to_schema(preference: NotificationPreference) -> PreferenceRead:
    return PreferenceRead(
        type=preference.type,
        email_enabled=preference.email_enabled,
        push_enabled=preference.push_enabled,
        in_app_enabled=preference.in_app_enabled,
    )


def _settings_to_schema(settings: NotificationSettings) -> SettingsRead:
    return SettingsRead(
        notifications_enabled=settings.notifications_enabled,
        quiet_hours_enabled=settings.quiet_hours_enabled,
        quiet_hours_start=settings.quiet_hours_start,
        quiet_hours_end=settings.quiet_hours_end,
        timezone=settings.timezone,
    )


@router.get("/", response_model=list[PreferenceRead])
def list_preferences(
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> list[PreferenceRead]:
    """Return the channel switches for every notification type."""

    return [
        _preference_to_schema(preference)
        for preference in list_preferences_uc(db, user_id=current_user.id)
    ]


@router.get("/settings", response_model=SettingsRead)
def read_settings(
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> SettingsRead:
    return _settings_to_schema(get_notification_settings(db, user_id=current_user.id))


@router.put("/settings", response_model=SettingsRead)
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> SettingsRead:
    saved = update_notification_settings(
        db,
        user_id=current_user.id,
        notifications_enabled=payload.notifications_enabled,
        quiet_hours_enabled=payload.quiet_hours_enabled,
        quiet_hours_start=payload.quiet_hours_start,
        quiet_hours_end=payload.quiet_hours_end,
        timezone=payload.timezone,
    )
    return _settings_to_schema(saved)


@router.put("/{notification_type}", response_model=PreferenceRead)
def update_preference(
    notification_type: NotificationType,
    payload: PreferenceUpdate,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> PreferenceRead:
    saved = update_preference_uc(
        db,
        user_id=current_user.id,
        notification_type=notification_type,
        email_enabled=payload.email_enabled,
        push_enabled=payload.push_enabled,
        in_app_enabled=payload.in_app_enabled,
    )
    return _preference_to_schema(saved)
