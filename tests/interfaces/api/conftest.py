from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from notifier.infrastructure.security import create_access_token


@pytest.fixture()
def client(session):
    """Return a test client bound to a freshly created schema."""

    from main import create_app

    return TestClient(create_app())


@pytest.fixture()
def auth_headers():
    def _headers(user_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
