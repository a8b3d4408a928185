"""Best-effort websocket publishing of new notifications."""

from __future__ import annotations

import asyncio

from notifier.domain.entities import (
    Notification,
    NotificationPriority,
    NotificationType,
    SystemPayload,
)
from notifier.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationPublisher,
    serialize_notification,
)

from tests.support import NOW


class FakeManager:
    def __init__(self, connected=(), loop=None) -> None:
        self.connected = set(connected)
        self.loop = loop
        self.sent = []

    def is_connected(self, user_id: int) -> bool:
        return user_id in self.connected

    async def send_to_user(self, user_id: int, message) -> None:
        self.sent.append((user_id, message))


def _notification(user_id: int = 7) -> Notification:
    return Notification(
        id=11,
        user_id=user_id,
        type=NotificationType.SYSTEM,
        priority=NotificationPriority.MEDIUM,
        title="Maintenance",
        message="Down at 22:00",
        payload=SystemPayload(action_url="https://status.example.com"),
        created_at=NOW,
    )


def test_serialize_notification_is_json_friendly():
    data = serialize_notification(_notification())

    assert data["type"] == "system"
    assert data["priority"] == "medium"
    assert data["payload"] == {"action_url": "https://status.example.com"}
    assert data["created_at"] == NOW.isoformat()
    assert data["read_at"] is None


def test_disconnected_user_is_skipped():
    manager = FakeManager()

    NotificationPublisher(manager).dispatch(_notification())

    assert manager.sent == []


def test_dispatch_inside_running_loop_schedules_task():
    manager = FakeManager(connected={7})
    publisher = NotificationPublisher(manager)

    async def scenario():
        publisher.dispatch(_notification())
        await asyncio.sleep(0)

    asyncio.run(scenario())

    [(user_id, message)] = manager.sent
    assert user_id == 7
    assert message["type"] == "notification"
    assert message["data"]["id"] == 11


def test_dispatch_from_plain_thread_uses_manager_loop():
    loop = asyncio.new_event_loop()
    manager = FakeManager(connected={7}, loop=loop)

    try:
        NotificationPublisher(manager).dispatch(_notification())
        loop.run_until_complete(asyncio.sleep(0.01))
    finally:
        loop.close()

    assert len(manager.sent) == 1


def test_dispatch_without_any_loop_drops_copy():
    manager = FakeManager(connected={7})

    NotificationPublisher(manager).dispatch(_notification())

    assert manager.sent == []


class FakeSocket:
    def __init__(self, broken: bool = False) -> None:
        self.broken = broken
        self.accepted = False
        self.messages = []
        self.close_code = None

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message) -> None:
        if self.broken:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        self.messages.append(message)

    async def close(self, code: int = 1000) -> None:
        self.close_code = code


def test_manager_drops_broken_sockets_and_closes_the_rest():
    manager = NotificationConnectionManager()
    healthy, broken, other = FakeSocket(), FakeSocket(broken=True), FakeSocket()

    async def scenario():
        await manager.connect(7, healthy)
        await manager.connect(7, broken)
        await manager.connect(8, other)
        assert manager.loop is asyncio.get_running_loop()
        delivered = await manager.send_to_user(7, {"type": "notification"})
        remaining = manager.connection_count(7)
        await manager.close_all()
        return delivered, remaining

    delivered, remaining = asyncio.run(scenario())

    assert (delivered, remaining) == (1, 1)
    assert healthy.messages == [{"type": "notification"}]
    assert (healthy.close_code, other.close_code) == (1001, 1001)
    assert broken.close_code is None
    assert manager.connection_count() == 0
    assert not manager.is_connected(8)
    assert manager.loop is None
