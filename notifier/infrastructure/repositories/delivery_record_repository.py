"""Persistence helpers for per-channel delivery records."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from notifier.domain.entities import Channel, DeliveryStatus
from notifier.infrastructure.models import NotificationDeliveryModel
from notifier.utils import now_utc, to_naive_utc


class DeliveryRecordRepository:
    """Track whether each channel of a notification reached the user."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(
        self,
        notification_id: int,
        channel: Channel,
        *,
        status: DeliveryStatus = DeliveryStatus.PENDING,
        delivered_at: datetime | None = None,
    ) -> None:
        self.session.add(
            NotificationDeliveryModel(
                notification_id=notification_id,
                channel=channel.value,
                status=status.value,
                delivered_at=to_naive_utc(delivered_at),
            )
        )
        self.session.flush()

    def statuses_for(self, notification_id: int) -> dict[Channel, DeliveryStatus]:
        rows: Sequence[NotificationDeliveryModel] = (
            self.session.query(NotificationDeliveryModel)
            .filter(NotificationDeliveryModel.notification_id == notification_id)
            .all()
        )
        return {Channel(row.channel): DeliveryStatus(row.status) for row in rows}

    def mark_sent(self, notification_id: int, channel: Channel) -> None:
        self._update(
            notification_id,
            channel,
            {
                NotificationDeliveryModel.status: DeliveryStatus.SENT.value,
                NotificationDeliveryModel.delivered_at: to_naive_utc(now_utc()),
                NotificationDeliveryModel.error_message: None,
            },
        )

    def mark_failed(self, notification_id: int, channel: Channel, error: str) -> None:
        # A push notification fans out to several devices; one success is enough.
        self.session.query(NotificationDeliveryModel).filter(
            NotificationDeliveryModel.notification_id == notification_id,
            NotificationDeliveryModel.channel == channel.value,
            NotificationDeliveryModel.status != DeliveryStatus.SENT.value,
        ).update(
            {
                NotificationDeliveryModel.status: DeliveryStatus.FAILED.value,
                NotificationDeliveryModel.error_message: error,
            },
            synchronize_session=False,
        )

    def _update(self, notification_id: int, channel: Channel, values: dict) -> None:
        self.session.query(NotificationDeliveryModel).filter(
            NotificationDeliveryModel.notification_id == notification_id,
            NotificationDeliveryModel.channel == channel.value,
        ).update(values, synchronize_session=False)


__all__ = ["DeliveryRecordRepository"]
