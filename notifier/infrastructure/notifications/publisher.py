"""Utility helpers to push notifications to websocket subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from anyio import from_thread

from notifier.domain.entities import Notification, payload_to_dict

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize notifications and schedule their delivery.

    Delivery is best effort: a user without an open websocket simply
    misses the realtime copy and sees the notification on the next fetch.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    def dispatch(self, notification: Notification) -> None:
        """Schedule ``notification`` to be delivered to its user."""

        if not self._manager.is_connected(notification.user_id):
            return

        message = {"type": "notification", "data": self._serialize(notification)}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._dispatch_from_thread(notification.user_id, message)
        else:
            loop.create_task(
                self._manager.send_to_user(notification.user_id, message)
            )

    def _dispatch_from_thread(self, user_id: int, message: dict[str, Any]) -> None:
        try:
            from_thread.run(self._manager.send_to_user, user_id, message)
            return
        except RuntimeError:
            pass  # not an AnyIO worker thread

        loop = self._manager.loop
        if loop is None or loop.is_closed():
            logger.debug("No event loop available; realtime copy for user %s dropped", user_id)
            return
        asyncio.run_coroutine_threadsafe(
            self._manager.send_to_user(user_id, message), loop
        )

    @staticmethod
    def _serialize(notification: Notification) -> dict[str, Any]:
        return {
            "id": notification.id,
            "user_id": notification.user_id,
            "type": notification.type.value,
            "priority": notification.priority.value,
            "title": notification.title,
            "message": notification.message,
            "payload": payload_to_dict(notification.payload),
            "entity_type": notification.entity_type,
            "entity_id": notification.entity_id,
            "is_read": notification.is_read,
            "created_at": notification.created_at.isoformat()
            if notification.created_at
            else None,
            "read_at": notification.read_at.isoformat() if notification.read_at else None,
            "created_by": notification.created_by,
        }


notification_publisher = NotificationPublisher(notification_manager)


def dispatch_notification(notification: Notification) -> None:
    """Public helper that delegates to the shared publisher instance."""

    notification_publisher.dispatch(notification)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return NotificationPublisher._serialize(notification)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "dispatch_notification",
    "serialize_notification",
]
