"""SQLAlchemy model tracking delivery of a notification per channel."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from notifier.infrastructure.database import Base
from notifier.utils import now_utc_naive


class NotificationDeliveryModel(Base):
    __tablename__ = "notification_delivery"
    __table_args__ = (
        UniqueConstraint("notification_id", "channel", name="uq_delivery_notification_channel"),
    )

    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(
        Integer, ForeignKey("notification.id"), nullable=False, index=True
    )
    channel = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    delivered_at = Column(DateTime(), nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime(), nullable=True, onupdate=now_utc_naive)


__all__ = ["NotificationDeliveryModel"]
