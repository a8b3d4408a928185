"""Dispatching domain events inside a savepoint."""

from __future__ import annotations

import json
from datetime import timedelta

from notifier.application.use_cases.notifications import (
    DispatchOutcome,
    EventDispatcher,
    NotificationRequest,
)
from notifier.domain.entities import (
    DeliveryStatus,
    DomainEvent,
    EntityAssigned,
    NotificationPriority,
    NotificationType,
    SystemPayload,
    TaskAssignedPayload,
    TaskCommentAdded,
    TaskStatusChanged,
)
from notifier.infrastructure.repositories import (
    DeviceRepository,
    EmailTaskRepository,
    NotificationRepository,
    PushTaskRepository,
    UserRepository,
)

from tests.support import NOW


class _Recorder:
    def __init__(self) -> None:
        self.published = []

    def __call__(self, notification) -> None:
        self.published.append(notification.id)


class _Unregistered(DomainEvent):
    pass


def _dispatcher(publisher=None, rules=None) -> EventDispatcher:
    return EventDispatcher(rules, publisher=publisher or _Recorder(), clock=lambda: NOW)


def test_dispatch_creates_and_publishes_after_commit(session, make_user):
    make_user(2)
    publisher = _Recorder()
    dispatcher = _dispatcher(publisher)

    result = dispatcher.dispatch(
        session,
        EntityAssigned(
            entity_type="task",
            entity_id="t-1",
            entity_title="Pour slab",
            assignee_id=2,
            actor_id=1,
            task_priority="urgent",
        ),
    )

    assert result.outcome is DispatchOutcome.CREATED
    [notification] = result.notifications
    assert notification.priority is NotificationPriority.HIGH
    assert publisher.published == []

    session.commit()

    assert publisher.published == [notification.id]


def test_rollback_discards_realtime_copies(session, make_user):
    make_user(2)
    publisher = _Recorder()

    _dispatcher(publisher).dispatch(
        session,
        EntityAssigned(entity_type="form", entity_id="f-1", entity_title="Daily", assignee_id=2),
    )
    session.rollback()
    session.commit()

    assert publisher.published == []
    assert NotificationRepository(session).list_for_user(2) == []


def test_event_without_recipients_is_a_no_op(session, make_user):
    make_user(1)

    result = _dispatcher().dispatch(
        session,
        TaskStatusChanged(
            task_id="t-1",
            task_title="Pour slab",
            old_status="open",
            new_status="done",
            assignee_ids=(1,),
            actor_id=1,
        ),
    )

    assert result.outcome is DispatchOutcome.NO_OP
    assert result.notifications == []


def test_unregistered_event_is_rejected(session):
    result = _dispatcher().dispatch(session, _Unregistered())

    assert result.outcome is DispatchOutcome.REJECTED
    assert "_Unregistered" in result.error


def test_failed_event_rolls_back_only_its_own_writes(session, make_user):
    from notifier.domain.entities import Recipient

    make_user(2)
    make_user(3)

    def half_broken_rule(event, now):
        good = NotificationRequest(
            user_id=2,
            type=NotificationType.SYSTEM,
            title="Hello",
            message="First one is valid",
            payload=SystemPayload(),
        )
        # Wrong payload for the type: fails after the first row was flushed.
        bad = NotificationRequest(
            user_id=3,
            type=NotificationType.SYSTEM,
            title="Hello",
            message="Second one is not",
            payload=TaskAssignedPayload(task_id="t", task_title="t"),
        )
        return [good, bad]

    dispatcher = _dispatcher(rules={_Unregistered: half_broken_rule})
    UserRepository(session).add(Recipient(id=4, email="caller@example.com"))

    result = dispatcher.dispatch(session, _Unregistered())
    session.commit()

    assert result.outcome is DispatchOutcome.REJECTED
    assert NotificationRepository(session).list_for_user(2) == []
    # The caller's own pending write survives.
    assert UserRepository(session).get(4) is not None


def test_rejected_event_keeps_earlier_realtime_copies(session, make_user):
    make_user(2)
    publisher = _Recorder()
    dispatcher = _dispatcher(publisher)
    dispatcher.register(_Unregistered, lambda event, now: 1 / 0)

    first = dispatcher.dispatch(
        session,
        EntityAssigned(entity_type="task", entity_id="t-1", entity_title="Slab", assignee_id=2),
    )
    second = dispatcher.dispatch(session, _Unregistered())
    session.commit()

    assert second.outcome is DispatchOutcome.REJECTED
    assert publisher.published == [first.notifications[0].id]


def test_unknown_mention_does_not_drop_other_recipients(session, make_user):
    make_user(1)
    make_user(2)

    result = _dispatcher().dispatch(
        session,
        TaskCommentAdded(
            task_id="t-1",
            task_title="Pour slab",
            comment_id="c-1",
            content="ping @[999] please check",
            assignee_ids=(2,),
            actor_id=1,
        ),
    )
    session.commit()

    assert result.outcome is DispatchOutcome.CREATED
    [notification] = result.notifications
    assert (notification.user_id, notification.type) == (2, NotificationType.TASK_COMMENT)
    assert NotificationRepository(session).list_for_user(999) == []


def _subscription(endpoint: str) -> str:
    return json.dumps(
        {"endpoint": f"https://push.example.com/{endpoint}", "keys": {"p256dh": "k", "auth": "a"}}
    )


def test_urgent_task_assignment_end_to_end(session, make_user, make_device):
    make_user(1)
    make_user(2)
    laptop = make_device(2, token=_subscription("laptop"))
    phone = make_device(2, token=_subscription("phone"))
    stale = make_device(2, token=_subscription("stale"))
    DeviceRepository(session).disable(stale.id)
    session.commit()

    result = _dispatcher().dispatch(
        session,
        EntityAssigned(
            entity_type="task",
            entity_id="t-1",
            entity_title="Pour slab",
            assignee_id=2,
            actor_id=1,
            actor_name="Ana",
            task_priority="urgent",
        ),
    )
    session.commit()

    assert result.outcome is DispatchOutcome.CREATED
    [notification] = NotificationRepository(session).list_for_user(2)
    assert notification.priority is NotificationPriority.HIGH
    assert notification.type is NotificationType.TASK_ASSIGNED

    [email] = EmailTaskRepository(session).list_for_notification(notification.id)
    assert email.to_email == "user2@example.com"
    assert email.scheduled_for == notification.created_at + timedelta(minutes=5)
    assert email.status is DeliveryStatus.PENDING

    pushes = PushTaskRepository(session).list_for_notification(notification.id)
    assert sorted(task.device_id for task in pushes) == sorted([laptop.id, phone.id])
    assert all(task.scheduled_for == NOW + timedelta(minutes=5) for task in pushes)

    assert NotificationRepository(session).list_for_user(1) == []
