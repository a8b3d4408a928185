"""Persistence helpers for notification preferences and settings."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifier.domain.entities import (
    NotificationPreference,
    NotificationSettings,
    NotificationType,
)
from notifier.infrastructure.models import (
    NotificationPreferenceModel,
    NotificationSettingsModel,
)
from notifier.utils import ensure_utc


class PreferenceRepository:
    """Read and upsert the two halves of a user's preference model."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_preference(
        self, user_id: int, notification_type: NotificationType
    ) -> NotificationPreference | None:
        model = self._get_preference_model(user_id, notification_type)
        return self._preference_to_entity(model) if model else None

    def list_preferences(self, user_id: int) -> Sequence[NotificationPreference]:
        query = (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .order_by(NotificationPreferenceModel.type.asc())
        )
        return [self._preference_to_entity(model) for model in query.all()]

    def save_preference(self, preference: NotificationPreference) -> NotificationPreference:
        model = self._get_preference_model(preference.user_id, preference.type)
        if model is None:
            model = NotificationPreferenceModel(
                user_id=preference.user_id, type=preference.type.value
            )
            self.session.add(model)
        model.email_enabled = preference.email_enabled
        model.push_enabled = preference.push_enabled
        model.in_app_enabled = preference.in_app_enabled
        self.session.flush()
        return self._preference_to_entity(model)

    def get_settings(self, user_id: int) -> NotificationSettings | None:
        model = self._get_settings_model(user_id)
        return self._settings_to_entity(model) if model else None

    def save_settings(self, settings: NotificationSettings) -> NotificationSettings:
        model = self._get_settings_model(settings.user_id)
        if model is None:
            model = NotificationSettingsModel(user_id=settings.user_id)
            self.session.add(model)
        model.notifications_enabled = settings.notifications_enabled
        model.quiet_hours_enabled = settings.quiet_hours_enabled
        model.quiet_hours_start = settings.quiet_hours_start
        model.quiet_hours_end = settings.quiet_hours_end
        model.timezone = settings.timezone
        self.session.flush()
        return self._settings_to_entity(model)

    def _get_preference_model(
        self, user_id: int, notification_type: NotificationType
    ) -> NotificationPreferenceModel | None:
        return (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .filter(NotificationPreferenceModel.type == notification_type.value)
            .one_or_none()
        )

    def _get_settings_model(self, user_id: int) -> NotificationSettingsModel | None:
        return (
            self.session.query(NotificationSettingsModel)
            .filter(NotificationSettingsModel.user_id == user_id)
            .one_or_none()
        )

    @staticmethod
    def _preference_to_entity(model: NotificationPreferenceModel) -> NotificationPreference:
        return NotificationPreference(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType(model.type),
            email_enabled=bool(model.email_enabled),
            push_enabled=bool(model.push_enabled),
            in_app_enabled=bool(model.in_app_enabled),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )

    @staticmethod
    def _settings_to_entity(model: NotificationSettingsModel) -> NotificationSettings:
        return NotificationSettings(
            id=model.id,
            user_id=model.user_id,
            notifications_enabled=bool(model.notifications_enabled),
            quiet_hours_enabled=bool(model.quiet_hours_enabled),
            quiet_hours_start=model.quiet_hours_start,
            quiet_hours_end=model.quiet_hours_end,
            timezone=model.timezone or "UTC",
            updated_at=ensure_utc(model.updated_at),
        )


__all__ = ["PreferenceRepository"]
