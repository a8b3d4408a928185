"""Use cases that create, read and configure notifications."""

from .create_notification import (
    CreatedNotification,
    NotificationRequest,
    PRIORITY_DELAYS,
    create_notification,
    delivery_time,
    notification_link,
)
from .devices import list_devices, register_device, unregister_device
from .dispatcher import DispatchOutcome, DispatchResult, EventDispatcher
from .preferences import (
    get_notification_settings,
    list_preferences,
    update_notification_settings,
    update_preference,
)
from .read_state import (
    count_unread,
    list_notifications,
    mark_all_notifications_read,
    mark_notifications_read,
)
from .rules import DEFAULT_RULES, extract_mentions
from .templates import render_template

__all__ = [
    "CreatedNotification",
    "DEFAULT_RULES",
    "DispatchOutcome",
    "DispatchResult",
    "EventDispatcher",
    "NotificationRequest",
    "PRIORITY_DELAYS",
    "count_unread",
    "create_notification",
    "delivery_time",
    "extract_mentions",
    "get_notification_settings",
    "list_devices",
    "list_notifications",
    "list_preferences",
    "mark_all_notifications_read",
    "mark_notifications_read",
    "notification_link",
    "register_device",
    "render_template",
    "unregister_device",
    "update_notification_settings",
    "update_preference",
]
