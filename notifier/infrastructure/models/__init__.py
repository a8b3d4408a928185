"""SQLAlchemy models for the notification service."""

from .delivery_task import EmailTaskModel, PushTaskModel
from .device import DeviceModel
from .notification import NotificationModel
from .notification_delivery import NotificationDeliveryModel
from .preference import NotificationPreferenceModel, NotificationSettingsModel
from .user import UserModel

__all__ = [
    "DeviceModel",
    "EmailTaskModel",
    "NotificationDeliveryModel",
    "NotificationModel",
    "NotificationPreferenceModel",
    "NotificationSettingsModel",
    "PushTaskModel",
    "UserModel",
]
