"""Shared fixtures: one in-memory database rebuilt for every test."""

from __future__ import annotations

import os

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")

from notifier.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from notifier.domain.entities import DevicePlatform, DeviceRegistration, Recipient  # noqa: E402
from notifier.infrastructure import database  # noqa: E402
from notifier.infrastructure.repositories import DeviceRepository, UserRepository  # noqa: E402

from tests.support import WEB_SUBSCRIPTION  # noqa: E402


@pytest.fixture()
def session():
    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
    database.initialize_database()
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def make_user(session):
    def _make_user(user_id: int, *, email: str | None = None, name: str | None = None, active=True):
        user = UserRepository(session).add(
            Recipient(
                id=user_id,
                email=email or f"user{user_id}@example.com",
                full_name=name or f"User {user_id}",
                is_active=active,
            )
        )
        session.commit()
        return user

    return _make_user


@pytest.fixture()
def make_device(session):
    def _make_device(user_id: int, token: str = WEB_SUBSCRIPTION, platform=DevicePlatform.WEB):
        device = DeviceRepository(session).register(
            DeviceRegistration(id=None, user_id=user_id, platform=platform, token=token)
        )
        session.commit()
        return device

    return _make_device
