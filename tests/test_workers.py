"""Claiming, retrying and finishing queued deliveries."""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from notifier.application.delivery import (
    EmailDeliveryWorker,
    PushDeliveryWorker,
    next_attempt_at,
)
from notifier.application.use_cases.maintenance import retry_failed_tasks
from notifier.application.use_cases.notifications import NotificationRequest, create_notification
from notifier.config import Settings
from notifier.domain.entities import (
    Channel,
    DeliveryStatus,
    NotificationPriority,
    NotificationType,
    TaskAssignedPayload,
)
from notifier.domain.errors import (
    EndpointGoneError,
    PermanentTransportError,
    TransientTransportError,
    TransportNotConfiguredError,
)
from notifier.infrastructure import database
from notifier.infrastructure.repositories import (
    DeliveryRecordRepository,
    DeviceRepository,
    EmailTaskRepository,
    PushTaskRepository,
)

from tests.support import NOW

SETTINGS = Settings(max_retries=3, retry_base_delay_seconds=60, claim_batch_size=10)


class FakeTransport:
    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.sent = []

    def send(self, message):
        self.sent.append(message)
        outcome = self.outcomes.pop(0) if self.outcomes else "msg-id"
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class Clock:
    def __init__(self, moment) -> None:
        self.moment = moment

    def __call__(self):
        return self.moment


@pytest.fixture()
def queued(session, make_user, make_device):
    """One medium notification for user 2 with an email and a push task."""

    make_user(2, name="Bo")
    make_device(2)
    created = create_notification(
        session,
        NotificationRequest(
            user_id=2,
            type=NotificationType.TASK_ASSIGNED,
            title="New Task Assignment",
            message="Ana assigned you to: Pour slab",
            payload=TaskAssignedPayload(task_id="t-1", task_title="Pour slab"),
            priority=NotificationPriority.MEDIUM,
            entity_type="task",
            entity_id="t-1",
            created_by=1,
        ),
        now=NOW,
    )
    session.commit()
    return created


def _worker(cls, transport, clock):
    worker = cls(database.SessionLocal, transport, settings=SETTINGS, clock=clock)
    return worker


def test_next_attempt_doubles_until_spent():
    base = timedelta(minutes=1)
    delays = [
        next_attempt_at(count, max_retries=3, base_delay=base, now=NOW)
        for count in range(4)
    ]

    assert delays[:3] == [NOW + timedelta(minutes=m) for m in (1, 2, 4)]
    assert delays[3] is None


def test_tasks_wait_for_their_schedule(session, queued):
    transport = FakeTransport()
    worker = _worker(EmailDeliveryWorker, transport, Clock(NOW + timedelta(minutes=10)))

    result = worker.run_once()
    worker.close()

    assert result.claimed == 0
    assert transport.sent == []


def test_email_sent_and_recorded(session, queued):
    transport = FakeTransport("sg-123")
    worker = _worker(EmailDeliveryWorker, transport, Clock(NOW + timedelta(minutes=16)))

    result = worker.run_once()
    worker.close()

    assert (result.claimed, result.sent) == (1, 1)
    [message] = transport.sent
    assert message.to_email == "user2@example.com"
    assert message.subject == "New Task Assigned: Pour slab"
    assert "Pour slab" in message.html

    [task] = EmailTaskRepository(session).list_for_notification(queued.notification.id)
    assert task.status is DeliveryStatus.SENT
    assert task.provider_message_id == "sg-123"
    statuses = DeliveryRecordRepository(session).statuses_for(queued.notification.id)
    assert statuses[Channel.EMAIL] is DeliveryStatus.SENT


def test_transient_failures_retry_with_backoff_then_fail(session, queued):
    clock = Clock(NOW + timedelta(minutes=16))
    transport = FakeTransport(*[TransientTransportError("503") for _ in range(5)])
    worker = _worker(EmailDeliveryWorker, transport, clock)
    repository = EmailTaskRepository(session)
    [task] = repository.list_for_notification(queued.notification.id)
    session.commit()

    observed = []
    for _ in range(4):
        worker.run_once()
        task = repository.get(task.id)
        session.commit()
        if task.status is DeliveryStatus.PENDING:
            observed.append(task.scheduled_for - clock.moment)
            clock.moment = task.scheduled_for
    worker.close()

    assert observed == [timedelta(minutes=1), timedelta(minutes=2), timedelta(minutes=4)]
    assert len(transport.sent) == 4
    assert task.status is DeliveryStatus.FAILED
    assert task.retry_count == 3
    assert not task.permanent_failure
    statuses = DeliveryRecordRepository(session).statuses_for(queued.notification.id)
    assert statuses[Channel.EMAIL] is DeliveryStatus.FAILED


def test_permanent_failure_is_terminal(session, queued):
    transport = FakeTransport(PermanentTransportError("bad address", status_code=400))
    worker = _worker(EmailDeliveryWorker, transport, Clock(NOW + timedelta(hours=1)))

    result = worker.run_once()
    worker.close()

    assert result.failed == 1
    [task] = EmailTaskRepository(session).list_for_notification(queued.notification.id)
    assert task.status is DeliveryStatus.FAILED
    assert task.permanent_failure
    assert task.retry_count == 0


def test_unconfigured_transport_parks_without_spending_retries(session, queued):
    clock = Clock(NOW + timedelta(hours=1))
    transport = FakeTransport(TransportNotConfiguredError("SendGrid configuration incomplete"))
    worker = _worker(EmailDeliveryWorker, transport, clock)

    assert worker.run_once().parked == 1
    [task] = EmailTaskRepository(session).list_for_notification(queued.notification.id)
    session.commit()
    assert task.status is DeliveryStatus.QUEUED_FOR_DELIVERY
    assert task.retry_count == 0

    # Once credentials exist the parked task goes out on the next run.
    assert worker.run_once().sent == 1
    worker.close()


def test_claim_is_exclusive(session, queued):
    repository = EmailTaskRepository(session)
    [task] = repository.list_for_notification(queued.notification.id)
    now = NOW + timedelta(hours=1)
    stale_before = now - timedelta(minutes=5)

    assert repository.try_claim(task.id, now=now, stale_before=stale_before)
    session.commit()
    assert not repository.try_claim(task.id, now=now, stale_before=stale_before)
    session.commit()

    # An abandoned claim becomes claimable again and costs one attempt.
    later = now + timedelta(minutes=6)
    assert repository.try_claim(task.id, now=later, stale_before=later - timedelta(minutes=5))
    session.commit()
    assert repository.get(task.id).retry_count == 1


def test_claim_order_prefers_priority(session, make_user):
    make_user(2)
    ids = {}
    for priority in (NotificationPriority.LOW, NotificationPriority.CRITICAL, NotificationPriority.HIGH):
        created = create_notification(
            session,
            NotificationRequest(
                user_id=2,
                type=NotificationType.TASK_ASSIGNED,
                title=f"{priority.value} task",
                message="",
                payload=TaskAssignedPayload(task_id="t", task_title="t"),
                priority=priority,
            ),
            now=NOW,
        )
        ids[created.email_tasks[0].id] = priority
    session.commit()

    now = NOW + timedelta(hours=1)
    claimable = EmailTaskRepository(session).list_claimable(
        now=now, stale_before=now - timedelta(minutes=5), limit=10
    )

    assert [ids[task.id] for task in claimable] == [
        NotificationPriority.CRITICAL,
        NotificationPriority.HIGH,
        NotificationPriority.LOW,
    ]


def test_push_sent_with_urgency_and_device_touched(session, queued):
    transport = FakeTransport(None)
    worker = _worker(PushDeliveryWorker, transport, Clock(NOW + timedelta(hours=1)))

    assert worker.run_once().sent == 1
    worker.close()

    [message] = transport.sent
    assert message.platform == "web"
    assert message.urgency == "normal"
    assert message.payload["title"] == "New Task Assignment"


def test_gone_endpoint_disables_device_and_fails_its_tasks(session, queued, make_device):
    [first] = PushTaskRepository(session).list_for_notification(queued.notification.id)
    session.commit()
    transport = FakeTransport(EndpointGoneError("Push subscription is no longer valid", status_code=410))
    worker = _worker(PushDeliveryWorker, transport, Clock(NOW + timedelta(hours=1)))

    result = worker.run_once()
    worker.close()

    assert result.failed == 1
    assert len(transport.sent) == 1
    device = DeviceRepository(session).get(first.device_id)
    assert not device.push_enabled
    task = PushTaskRepository(session).get(first.id)
    assert task.status is DeliveryStatus.FAILED
    assert task.permanent_failure
    statuses = DeliveryRecordRepository(session).statuses_for(queued.notification.id)
    assert statuses[Channel.PUSH] is DeliveryStatus.FAILED


def test_unexpected_transport_error_is_retried(session, queued):
    transport = FakeTransport(RuntimeError("boom"))
    worker = _worker(EmailDeliveryWorker, transport, Clock(NOW + timedelta(hours=1)))

    assert worker.run_once().retried == 1
    worker.close()

    [task] = EmailTaskRepository(session).list_for_notification(queued.notification.id)
    assert task.status is DeliveryStatus.PENDING
    assert task.retry_count == 1
    assert task.error_message == "boom"


def test_retry_sweep_revives_an_exhausted_task(session, queued):
    clock = Clock(NOW + timedelta(minutes=16))
    transport = FakeTransport(*[TransientTransportError("503") for _ in range(4)])
    worker = _worker(EmailDeliveryWorker, transport, clock)
    repository = EmailTaskRepository(session)
    [task] = repository.list_for_notification(queued.notification.id)
    session.commit()

    for _ in range(4):
        worker.run_once()
        clock.moment += timedelta(minutes=5)
    task = repository.get(task.id)
    session.commit()
    assert (task.status, task.retry_count, task.permanent_failure) == (DeliveryStatus.FAILED, 3, False)

    swept = retry_failed_tasks(session, max_retries=SETTINGS.max_retries, now=clock.moment)
    assert swept.email_tasks == 1

    assert worker.run_once().sent == 1
    worker.close()
    task = repository.get(task.id)
    assert task.status is DeliveryStatus.SENT
    assert len(transport.sent) == 5


class HangingTransport:
    """Blocks on the first ``hangs`` calls until released."""

    def __init__(self, hangs: int) -> None:
        self.hangs = hangs
        self.calls = 0
        self.release = threading.Event()
        self._lock = threading.Lock()

    def send(self, message):
        with self._lock:
            self.calls += 1
            hang = self.calls <= self.hangs
        if hang:
            self.release.wait(10)
        return "msg-id"


def test_hung_calls_do_not_burn_retries_of_waiting_tasks(session, make_user):
    make_user(2)
    for index in range(6):
        create_notification(
            session,
            NotificationRequest(
                user_id=2,
                type=NotificationType.TASK_ASSIGNED,
                title="New Task Assignment",
                message=f"Task {index}",
                payload=TaskAssignedPayload(task_id=f"t-{index}", task_title=f"Task {index}"),
                priority=NotificationPriority.MEDIUM,
            ),
            now=NOW,
        )
    session.commit()

    settings = Settings(max_retries=3, transport_timeout_seconds=0.2)
    transport = HangingTransport(hangs=4)
    worker = EmailDeliveryWorker(
        database.SessionLocal, transport, settings=settings, clock=Clock(NOW + timedelta(minutes=16))
    )
    try:
        first = worker.run_once()
        assert (first.claimed, first.retried, first.parked) == (6, 4, 2)
        assert transport.calls == 4

        transport.release.set()
        second = worker.run_once()
    finally:
        transport.release.set()
        worker.close()

    assert second.sent == 2
    assert transport.calls == 6


def test_abandoned_claim_on_last_attempt_fails_without_sending(session, queued):
    repository = EmailTaskRepository(session)
    [task] = repository.list_for_notification(queued.notification.id)
    now = NOW + timedelta(minutes=16)
    repository.reschedule(task.id, retry_count=3, scheduled_for=now, error="timeout")
    assert repository.try_claim(task.id, now=now, stale_before=now - timedelta(minutes=5))
    session.commit()

    transport = FakeTransport()
    worker = _worker(EmailDeliveryWorker, transport, Clock(now + timedelta(minutes=6)))
    result = worker.run_once()
    worker.close()

    assert (result.claimed, result.failed) == (1, 1)
    assert transport.sent == []
    task = repository.get(task.id)
    assert task.status is DeliveryStatus.FAILED
    assert not task.permanent_failure


def test_abandoned_claim_is_resent_with_one_attempt_charged(session, queued):
    repository = EmailTaskRepository(session)
    [task] = repository.list_for_notification(queued.notification.id)
    now = NOW + timedelta(minutes=16)
    assert repository.try_claim(task.id, now=now, stale_before=now - timedelta(minutes=5))
    session.commit()

    transport = FakeTransport(TransientTransportError("503"))
    worker = _worker(EmailDeliveryWorker, transport, Clock(now + timedelta(minutes=6)))
    assert worker.run_once().retried == 1
    worker.close()

    task = repository.get(task.id)
    assert task.status is DeliveryStatus.PENDING
    assert task.retry_count == 2
