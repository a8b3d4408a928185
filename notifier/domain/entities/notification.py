"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .payloads import NotificationPayload


class NotificationType(str, Enum):
    """Closed set of notification kinds the pipeline knows how to deliver."""

    SYSTEM = "system"
    TASK_ASSIGNED = "task_assigned"
    TASK_UPDATED = "task_updated"
    TASK_COMMENT = "task_comment"
    COMMENT_MENTION = "comment_mention"
    TASK_UNASSIGNED = "task_unassigned"
    FORM_ASSIGNED = "form_assigned"
    FORM_UNASSIGNED = "form_unassigned"
    APPROVAL_REQUESTED = "approval_requested"
    APPROVAL_STATUS_CHANGED = "approval_status_changed"
    ORGANIZATION_ADDED = "organization_added"
    PROJECT_ADDED = "project_added"
    ENTITY_ASSIGNED = "entity_assigned"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Numeric rank used to order queues (higher first)."""

        return _PRIORITY_RANKS[self]


_PRIORITY_RANKS = {
    NotificationPriority.LOW: 0,
    NotificationPriority.MEDIUM: 1,
    NotificationPriority.HIGH: 2,
    NotificationPriority.CRITICAL: 3,
}


class Channel(str, Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"


# Types whose self-notifications are kept: the requester of an approval gets
# a confirmation of their own request.
SELF_NOTIFICATION_ALLOWLIST = frozenset(
    {NotificationType.SYSTEM, NotificationType.APPROVAL_REQUESTED}
)

TITLE_MAX_LENGTH = 255
MESSAGE_MAX_LENGTH = 1000


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    user_id: int
    type: NotificationType
    priority: NotificationPriority
    title: str
    message: str
    payload: "NotificationPayload"
    entity_type: str | None = None
    entity_id: str | None = None
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None
    created_by: int | None = None


__all__ = [
    "Channel",
    "MESSAGE_MAX_LENGTH",
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "SELF_NOTIFICATION_ALLOWLIST",
    "TITLE_MAX_LENGTH",
]
