"""Use cases for managing push device registrations."""

from __future__ import annotations

import json
from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifier.domain.entities import DevicePlatform, DeviceRegistration
from notifier.domain.errors import NotificationValidationError
from notifier.infrastructure.repositories import DeviceRepository


def list_devices(session: Session, *, user_id: int) -> Sequence[DeviceRegistration]:
    return DeviceRepository(session).list_for_user(user_id)


def register_device(
    session: Session,
    *,
    user_id: int,
    platform: DevicePlatform,
    token: str,
    device_name: str | None = None,
) -> DeviceRegistration:
    """Register ``token`` for ``user_id`` or re-enable an existing registration."""

    if platform is DevicePlatform.WEB:
        try:
            subscription = json.loads(token)
        except json.JSONDecodeError as exc:
            raise NotificationValidationError(
                "Web devices must register their push subscription as JSON"
            ) from exc
        if not isinstance(subscription, dict) or not subscription.get("endpoint"):
            raise NotificationValidationError("Push subscription is missing its endpoint")

    device = DeviceRepository(session).register(
        DeviceRegistration(
            id=None,
            user_id=user_id,
            platform=platform,
            token=token,
            device_name=device_name,
            push_enabled=True,
        )
    )
    session.commit()
    return device


def unregister_device(session: Session, *, user_id: int, device_id: int) -> bool:
    removed = DeviceRepository(session).delete(device_id, user_id=user_id)
    session.commit()
    return removed


__all__ = ["list_devices", "register_device", "unregister_device"]
