"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from notifier.domain.entities import NotificationPriority, NotificationType


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[int] = Field(..., min_length=1, description="Notification identifiers")

    def unique_ids(self) -> list[int]:
        """Return the list of identifiers without duplicates preserving order."""

        return list(dict.fromkeys(self.ids))


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: int
    type: NotificationType
    priority: NotificationPriority
    title: str
    message: str
    payload: dict[str, Any] = Field(default_factory=dict)
    entity_type: str | None = None
    entity_id: str | None = None
    is_read: bool = False
    created_at: datetime
    read_at: datetime | None = None
    created_by: int | None = None


class UnreadCountRead(BaseModel):
    unread: int


class MarkReadResult(BaseModel):
    updated: int


__all__ = [
    "MarkReadResult",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "UnreadCountRead",
]
