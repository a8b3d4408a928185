"""SQLAlchemy models for the email and push delivery queues."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import declared_attr

from notifier.infrastructure.database import Base
from notifier.utils import now_utc_naive


class DeliveryTaskColumns:
    """Columns shared by every delivery queue table."""

    id = Column(Integer, primary_key=True, index=True)
    priority = Column(String(20), nullable=False, default="medium")
    # Numeric copy of ``priority`` so the claim query can order by it.
    priority_rank = Column(Integer, nullable=False, default=1)
    status = Column(String(30), nullable=False, default="pending")
    scheduled_for = Column(DateTime(), nullable=False, default=now_utc_naive)
    retry_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    permanent_failure = Column(Boolean, nullable=False, default=False)
    claimed_at = Column(DateTime(), nullable=True)
    sent_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime(), nullable=True, onupdate=now_utc_naive)

    @declared_attr
    def notification_id(cls):
        return Column(Integer, ForeignKey("notification.id"), nullable=False, index=True)


class EmailTaskModel(DeliveryTaskColumns, Base):
    __tablename__ = "email_task"
    __table_args__ = (Index("ix_email_task_claim", "status", "scheduled_for"),)

    to_email = Column(String(120), nullable=False)
    to_name = Column(String(120), nullable=True)
    subject = Column(String(255), nullable=False)
    template_id = Column(String(40), nullable=False)
    template_data = Column(JSON, nullable=False, default=dict)
    provider_message_id = Column(String(255), nullable=True)


class PushTaskModel(DeliveryTaskColumns, Base):
    __tablename__ = "push_task"
    __table_args__ = (Index("ix_push_task_claim", "status", "scheduled_for"),)

    device_id = Column(Integer, ForeignKey("user_device.id"), nullable=False, index=True)
    platform = Column(String(20), nullable=False)
    token = Column(String(2048), nullable=False)
    payload = Column(JSON, nullable=False, default=dict)


__all__ = ["DeliveryTaskColumns", "EmailTaskModel", "PushTaskModel"]
