"""Domain entities for queued email and push deliveries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .notification import NotificationPriority


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"
    QUEUED_FOR_DELIVERY = "queued_for_delivery"

    @property
    def is_terminal(self) -> bool:
        return self in (DeliveryStatus.SENT, DeliveryStatus.FAILED)


# Statuses a worker may pick up when ``scheduled_for`` has passed.
CLAIMABLE_STATUSES = (DeliveryStatus.PENDING, DeliveryStatus.QUEUED_FOR_DELIVERY)
OPEN_STATUSES = (
    DeliveryStatus.PENDING,
    DeliveryStatus.PROCESSING,
    DeliveryStatus.QUEUED_FOR_DELIVERY,
)


@dataclass
class DeliveryTask:
    """State shared by every queued delivery."""

    id: int | None
    notification_id: int
    priority: NotificationPriority
    status: DeliveryStatus = DeliveryStatus.PENDING
    scheduled_for: datetime | None = None
    retry_count: int = 0
    error_message: str | None = None
    permanent_failure: bool = False
    claimed_at: datetime | None = None
    sent_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class EmailTask(DeliveryTask):
    """Email waiting to be rendered and handed to the email transport."""

    to_email: str = ""
    to_name: str | None = None
    subject: str = ""
    template_id: str = ""
    template_data: dict[str, Any] = field(default_factory=dict)
    provider_message_id: str | None = None


@dataclass
class PushTask(DeliveryTask):
    """Push message addressed to one registered device."""

    device_id: int | None = None
    platform: str = ""
    token: str = ""
    payload: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "CLAIMABLE_STATUSES",
    "DeliveryStatus",
    "DeliveryTask",
    "EmailTask",
    "OPEN_STATUSES",
    "PushTask",
]
