"""Persistence helpers for push device registrations."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from notifier.domain.entities import DevicePlatform, DeviceRegistration
from notifier.infrastructure.models import DeviceModel, PushTaskModel
from notifier.utils import ensure_utc, now_utc, to_naive_utc


class DeviceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, device_id: int) -> DeviceRegistration | None:
        model = self.session.get(DeviceModel, device_id)
        return self._to_entity(model) if model else None

    def list_for_user(
        self, user_id: int, *, enabled_only: bool = False
    ) -> Sequence[DeviceRegistration]:
        query = self.session.query(DeviceModel).filter(DeviceModel.user_id == user_id)
        if enabled_only:
            query = query.filter(DeviceModel.push_enabled.is_(True))
        query = query.order_by(DeviceModel.id.asc())
        return [self._to_entity(model) for model in query.all()]

    def register(self, device: DeviceRegistration) -> DeviceRegistration:
        """Create the registration or refresh the one with the same token."""

        model = (
            self.session.query(DeviceModel)
            .filter(DeviceModel.user_id == device.user_id)
            .filter(DeviceModel.token == device.token)
            .one_or_none()
        )
        if model is None:
            model = DeviceModel(user_id=device.user_id, token=device.token)
            self.session.add(model)
        model.platform = device.platform.value
        model.device_name = device.device_name
        model.push_enabled = device.push_enabled
        model.last_used = to_naive_utc(device.last_used or now_utc())
        self.session.flush()
        return self._to_entity(model)

    def delete(self, device_id: int, *, user_id: int) -> bool:
        model = self.session.get(DeviceModel, device_id)
        if model is None or model.user_id != user_id:
            return False
        # Queue rows keep a reference to the device.
        self.session.query(PushTaskModel).filter(
            PushTaskModel.device_id == device_id
        ).delete(synchronize_session=False)
        self.session.delete(model)
        self.session.flush()
        return True

    def disable(self, device_id: int) -> None:
        self.session.query(DeviceModel).filter(DeviceModel.id == device_id).update(
            {DeviceModel.push_enabled: False}, synchronize_session=False
        )

    def touch(self, device_id: int) -> None:
        self.session.query(DeviceModel).filter(DeviceModel.id == device_id).update(
            {DeviceModel.last_used: to_naive_utc(now_utc())}, synchronize_session=False
        )

    @staticmethod
    def _to_entity(model: DeviceModel) -> DeviceRegistration:
        return DeviceRegistration(
            id=model.id,
            user_id=model.user_id,
            platform=DevicePlatform(model.platform),
            token=model.token,
            device_name=model.device_name,
            push_enabled=bool(model.push_enabled),
            last_used=ensure_utc(model.last_used),
            created_at=ensure_utc(model.created_at),
        )


__all__ = ["DeviceRepository"]
