"""SQLAlchemy models for notification preferences and user settings."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)

from notifier.infrastructure.database import Base
from notifier.utils import now_utc_naive


class NotificationPreferenceModel(Base):
    """Channel switches for one (user, notification type) pair."""

    __tablename__ = "notification_preference"
    __table_args__ = (
        UniqueConstraint("user_id", "type", name="uq_notification_preference_user_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    type = Column(String(40), nullable=False)
    email_enabled = Column(Boolean, nullable=False, default=True)
    push_enabled = Column(Boolean, nullable=False, default=True)
    in_app_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(), nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime(), nullable=True, onupdate=now_utc_naive)


class NotificationSettingsModel(Base):
    """User-wide kill switch and quiet hours."""

    __tablename__ = "notification_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, unique=True)
    notifications_enabled = Column(Boolean, nullable=False, default=True)
    quiet_hours_enabled = Column(Boolean, nullable=False, default=False)
    quiet_hours_start = Column(Time(), nullable=True)
    quiet_hours_end = Column(Time(), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    updated_at = Column(DateTime(), nullable=True, onupdate=now_utc_naive)


__all__ = ["NotificationPreferenceModel", "NotificationSettingsModel"]
