"""Pydantic schemas for request and response bodies."""

from .device import DeviceRead, DeviceRegister, VapidKeyRead
from .notification import (
    MarkReadResult,
    NotificationMarkReadRequest,
    NotificationRead,
    UnreadCountRead,
)
from .preference import PreferenceRead, PreferenceUpdate, SettingsRead, SettingsUpdate

__all__ = [
    "DeviceRead",
    "DeviceRegister",
    "MarkReadResult",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "PreferenceRead",
    "PreferenceUpdate",
    "SettingsRead",
    "SettingsUpdate",
    "UnreadCountRead",
    "VapidKeyRead",
]
