"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from notifier.domain.entities import (
    Notification,
    NotificationPriority,
    NotificationType,
    payload_from_dict,
    payload_to_dict,
)
from notifier.infrastructure.models import (
    EmailTaskModel,
    NotificationDeliveryModel,
    NotificationModel,
    PushTaskModel,
)
from notifier.utils import ensure_utc, now_utc, to_naive_utc


class NotificationRepository:
    """Provide storage operations for :class:`Notification` objects.

    The repository only flushes; the caller owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_user(
        self,
        user_id: int,
        *,
        limit: int | None = 50,
        unread_only: bool = False,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel)
        query = query.filter(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def unread_count(self, user_id: int) -> int:
        return (
            self.session.query(func.count(NotificationModel.id))
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.is_read.is_(False))
            .scalar()
            or 0
        )

    def add(self, notification: Notification) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.flush()
        return self._to_entity(model)

    def mark_as_read(
        self,
        notification_ids: Iterable[int],
        *,
        user_id: int,
        read_at: datetime | None = None,
    ) -> int:
        """Mark the given notifications as read and return how many changed.

        Rows that are already read keep their original ``read_at``.
        """

        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        return (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: to_naive_utc(read_at or now_utc()),
                },
                synchronize_session=False,
            )
        )

    def mark_all_as_read(self, user_id: int, *, read_at: datetime | None = None) -> int:
        return (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.read_at: to_naive_utc(read_at or now_utc()),
                },
                synchronize_session=False,
            )
        )

    def purge(self, *, read_before: datetime, unread_before: datetime) -> int:
        """Delete old notifications together with their tasks and delivery rows."""

        read_cutoff = to_naive_utc(read_before)
        unread_cutoff = to_naive_utc(unread_before)
        ids = [
            notification_id
            for (notification_id,) in self.session.query(NotificationModel.id)
            .filter(
                (
                    NotificationModel.is_read.is_(True)
                    & (NotificationModel.read_at < read_cutoff)
                )
                | (
                    NotificationModel.is_read.is_(False)
                    & (NotificationModel.created_at < unread_cutoff)
                )
            )
            .all()
        ]
        if not ids:
            return 0

        for child in (EmailTaskModel, PushTaskModel, NotificationDeliveryModel):
            self.session.query(child).filter(child.notification_id.in_(ids)).delete(
                synchronize_session=False
            )
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id.in_(ids))
            .delete(synchronize_session=False)
        )

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel, notification: Notification
    ) -> None:
        model.created_at = to_naive_utc(notification.created_at or now_utc())
        model.user_id = notification.user_id
        model.type = notification.type.value
        model.priority = notification.priority.value
        model.title = notification.title
        model.message = notification.message
        model.payload = payload_to_dict(notification.payload)
        model.entity_type = notification.entity_type
        model.entity_id = notification.entity_id
        model.is_read = notification.is_read
        model.read_at = to_naive_utc(notification.read_at)
        model.created_by = notification.created_by

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        notification_type = NotificationType(model.type)
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=notification_type,
            priority=NotificationPriority(model.priority),
            title=model.title,
            message=model.message,
            payload=payload_from_dict(notification_type, model.payload),
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            is_read=bool(model.is_read),
            read_at=ensure_utc(model.read_at),
            created_at=ensure_utc(model.created_at),
            created_by=model.created_by,
        )


__all__ = ["NotificationRepository"]
