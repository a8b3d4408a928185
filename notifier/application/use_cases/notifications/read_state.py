"""Use cases for reading the inbox and marking notifications as read."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy.orm import Session

from notifier.domain.entities import Notification
from notifier.infrastructure.repositories import NotificationRepository


def list_notifications(
    session: Session,
    *,
    user_id: int,
    limit: int | None = 50,
    unread_only: bool = False,
) -> Sequence[Notification]:
    repository = NotificationRepository(session)
    return repository.list_for_user(user_id, limit=limit, unread_only=unread_only)


def count_unread(session: Session, *, user_id: int) -> int:
    return NotificationRepository(session).unread_count(user_id)


def mark_notifications_read(
    session: Session, *, user_id: int, notification_ids: Iterable[int]
) -> int:
    """Mark notifications owned by ``user_id`` as read.

    Already-read notifications are left untouched, so repeating the call is
    harmless. Returns the number of notifications that changed.
    """

    updated = NotificationRepository(session).mark_as_read(
        notification_ids, user_id=user_id
    )
    session.commit()
    return updated


def mark_all_notifications_read(session: Session, *, user_id: int) -> int:
    updated = NotificationRepository(session).mark_all_as_read(user_id)
    session.commit()
    return updated


__all__ = [
    "count_unread",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notifications_read",
]
