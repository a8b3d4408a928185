"""Endpoints to register and remove push devices."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from notifier.application.use_cases.notifications import (
    list_devices as list_devices_uc,
    register_device as register_device_uc,
    unregister_device,
)
from notifier.config import get_settings
from notifier.domain.entities import DeviceRegistration, Recipient
from notifier.domain.errors import NotificationValidationError
from notifier.infrastructure.database import get_db
from notifier.interfaces.api.dependencies import get_current_user
from notifier.interfaces.api.schemas import DeviceRead, DeviceRegister, VapidKeyRead

router = APIRouter(prefix="/devices", tags=["devices"])


def _device_to_schema(device: DeviceRegistration) -> DeviceRead:
    return DeviceRead(
        id=device.id or 0,
        platform=device.platform,
        device_name=device.device_name,
        push_enabled=device.push_enabled,
        last_used=device.last_used,
        created_at=device.created_at,
    )


@router.get("/vapid-key", response_model=VapidKeyRead)
def read_vapid_key() -> VapidKeyRead:
    """Return the key browsers need to create a push subscription."""

    settings = get_settings()
    return VapidKeyRead(
        public_key=settings.vapid_public_key,
        configured=bool(settings.vapid_public_key and settings.push_enabled),
    )


@router.get("/", response_model=list[DeviceRead])
def list_devices(
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> list[DeviceRead]:
    return [_device_to_schema(device) for device in list_devices_uc(db, user_id=current_user.id)]


@router.post("/", response_model=DeviceRead, status_code=status.HTTP_201_CREATED)
def register_device(
    payload: DeviceRegister,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> DeviceRead:
    """Register a push endpoint for the authenticated user."""

    try:
        device = register_device_uc(
            db,
            user_id=current_user.id,
            platform=payload.platform,
            token=payload.token,
            device_name=payload.device_name,
        )
    except NotificationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return _device_to_schema(device)


@router.delete("/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_device(
    device_id: int,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> Response:
    if not unregister_device(db, user_id=current_user.id, device_id=device_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Device not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
