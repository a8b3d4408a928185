"""Preference and quiet-hours endpoints."""

from __future__ import annotations

from notifier.domain.entities import NotificationType


def test_defaults_cover_every_type(client, make_user, auth_headers):
    make_user(2)

    response = client.get("/preferences/", headers=auth_headers(2))

    assert response.status_code == 200
    body = response.json()
    assert {item["type"] for item in body} == {t.value for t in NotificationType}
    assert all(item["email_enabled"] and item["push_enabled"] for item in body)


def test_update_single_type(client, make_user, auth_headers):
    make_user(2)

    response = client.put(
        "/preferences/task_comment",
        json={"email_enabled": False, "push_enabled": True, "in_app_enabled": True},
        headers=auth_headers(2),
    )
    assert response.status_code == 200
    assert response.json()["email_enabled"] is False

    listed = {item["type"]: item for item in client.get("/preferences/", headers=auth_headers(2)).json()}
    assert listed["task_comment"]["email_enabled"] is False
    assert listed["task_assigned"]["email_enabled"] is True


def test_unknown_type_is_rejected(client, make_user, auth_headers):
    make_user(2)

    response = client.put("/preferences/birthday", json={}, headers=auth_headers(2))

    assert response.status_code == 422


def test_settings_round_trip(client, make_user, auth_headers):
    make_user(2)

    assert client.get("/preferences/settings", headers=auth_headers(2)).json() == {
        "notifications_enabled": True,
        "quiet_hours_enabled": False,
        "quiet_hours_start": None,
        "quiet_hours_end": None,
        "timezone": "UTC",
    }

    payload = {
        "notifications_enabled": True,
        "quiet_hours_enabled": True,
        "quiet_hours_start": "22:00:00",
        "quiet_hours_end": "07:00:00",
        "timezone": "America/Bogota",
    }
    response = client.put("/preferences/settings", json=payload, headers=auth_headers(2))

    assert response.status_code == 200
    assert response.json() == payload
    assert client.get("/preferences/settings", headers=auth_headers(2)).json() == payload


def test_settings_validation(client, make_user, auth_headers):
    make_user(2)

    missing_end = {"quiet_hours_enabled": True, "quiet_hours_start": "22:00:00"}
    bad_zone = {"timezone": "Mars/Olympus"}

    assert client.put("/preferences/settings", json=missing_end, headers=auth_headers(2)).status_code == 422
    assert client.put("/preferences/settings", json=bad_zone, headers=auth_headers(2)).status_code == 422
