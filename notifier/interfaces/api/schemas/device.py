"""Pydantic models for push device registration."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from notifier.domain.entities import DevicePlatform


class DeviceRegister(BaseModel):
    platform: DevicePlatform
    token: str = Field(..., min_length=1, max_length=2048)
    device_name: str | None = Field(default=None, max_length=255)


class VapidKeyRead(BaseModel):
    public_key: str | None = None
    configured: bool


class DeviceRead(BaseModel):
    id: int
    platform: DevicePlatform
    device_name: str | None = None
    push_enabled: bool
    last_used: datetime | None = None
    created_at: datetime | None = None


__all__ = ["DeviceRead", "DeviceRegister", "VapidKeyRead"]
