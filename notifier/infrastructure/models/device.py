"""SQLAlchemy model for devices registered to receive push messages."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)

from notifier.infrastructure.database import Base
from notifier.utils import now_utc_naive


class DeviceModel(Base):
    __tablename__ = "user_device"
    __table_args__ = (UniqueConstraint("user_id", "token", name="uq_user_device_token"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    platform = Column(String(20), nullable=False)
    token = Column(String(2048), nullable=False)
    device_name = Column(String(120), nullable=True)
    push_enabled = Column(Boolean, nullable=False, default=True)
    last_used = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_utc_naive)


__all__ = ["DeviceModel"]
