"""Domain entity representing a device registered for push messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DevicePlatform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


@dataclass
class DeviceRegistration:
    """Push endpoint owned by a user.

    For ``web`` devices ``token`` holds the JSON encoded push subscription.
    """

    id: int | None
    user_id: int
    platform: DevicePlatform
    token: str
    device_name: str | None = None
    push_enabled: bool = True
    last_used: datetime | None = None
    created_at: datetime | None = None


__all__ = ["DevicePlatform", "DeviceRegistration"]
