"""Push device registration endpoints."""

from __future__ import annotations

from notifier.config import reset_settings_cache

from tests.support import WEB_SUBSCRIPTION


def test_register_list_and_remove(client, make_user, auth_headers):
    make_user(2)
    headers = auth_headers(2)

    created = client.post(
        "/devices/",
        json={"platform": "web", "token": WEB_SUBSCRIPTION, "device_name": "Firefox"},
        headers=headers,
    )
    assert created.status_code == 201
    device = created.json()
    assert device["platform"] == "web"
    assert device["push_enabled"] is True
    assert "token" not in device

    again = client.post("/devices/", json={"platform": "web", "token": WEB_SUBSCRIPTION}, headers=headers)
    assert again.json()["id"] == device["id"]

    listed = client.get("/devices/", headers=headers).json()
    assert [item["id"] for item in listed] == [device["id"]]

    assert client.delete(f"/devices/{device['id']}", headers=headers).status_code == 204
    assert client.delete(f"/devices/{device['id']}", headers=headers).status_code == 404


def test_web_token_must_be_a_subscription(client, make_user, auth_headers):
    make_user(2)

    response = client.post(
        "/devices/", json={"platform": "web", "token": "plain-token"}, headers=auth_headers(2)
    )

    assert response.status_code == 422


def test_devices_are_private(client, make_user, auth_headers):
    make_user(2)
    make_user(3)
    device = client.post(
        "/devices/", json={"platform": "android", "token": "fcm-token"}, headers=auth_headers(2)
    ).json()

    assert client.get("/devices/", headers=auth_headers(3)).json() == []
    assert client.delete(f"/devices/{device['id']}", headers=auth_headers(3)).status_code == 404


def test_vapid_key_reports_missing_configuration(client):
    response = client.get("/devices/vapid-key")

    assert response.status_code == 200
    assert response.json() == {"public_key": None, "configured": False}


def test_vapid_key_returns_public_key(client, monkeypatch):
    monkeypatch.setenv("VAPID_PUBLIC_KEY", "BPublicKey")
    monkeypatch.setenv("VAPID_PRIVATE_KEY", "private-key")
    reset_settings_cache()
    try:
        response = client.get("/devices/vapid-key")
    finally:
        monkeypatch.delenv("VAPID_PUBLIC_KEY")
        monkeypatch.delenv("VAPID_PRIVATE_KEY")
        reset_settings_cache()

    assert response.json() == {"public_key": "BPublicKey", "configured": True}
