"""SQLAlchemy model for the recipient directory."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from notifier.infrastructure.database import Base
from notifier.utils import now_utc_naive


class UserModel(Base):
    """Minimal user record: where to send emails and how to greet people."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(120), nullable=False, index=True)
    full_name = Column(String(120), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive)


__all__ = ["UserModel"]
