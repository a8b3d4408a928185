"""Repository implementations for infrastructure layer."""

from .delivery_record_repository import DeliveryRecordRepository
from .delivery_task_repository import (
    DeliveryTaskRepository,
    EmailTaskRepository,
    PushTaskRepository,
)
from .device_repository import DeviceRepository
from .notification_repository import NotificationRepository
from .preference_repository import PreferenceRepository
from .user_repository import UserRepository

__all__ = [
    "DeliveryRecordRepository",
    "DeliveryTaskRepository",
    "DeviceRepository",
    "EmailTaskRepository",
    "NotificationRepository",
    "PreferenceRepository",
    "PushTaskRepository",
    "UserRepository",
]
