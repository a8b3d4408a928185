"""Operator sweeps over the delivery queues and the inbox."""

from __future__ import annotations

from datetime import timedelta

from notifier.application.use_cases.maintenance import purge_old_records, retry_failed_tasks
from notifier.application.use_cases.notifications import NotificationRequest, create_notification
from notifier.domain.entities import (
    DeliveryStatus,
    NotificationPriority,
    NotificationType,
    SystemPayload,
)
from notifier.infrastructure.models import NotificationDeliveryModel
from notifier.infrastructure.repositories import EmailTaskRepository, NotificationRepository
from notifier.utils import now_utc

from tests.support import NOW


def _notify(session, user_id: int, *, now=NOW):
    return create_notification(
        session,
        NotificationRequest(
            user_id=user_id,
            type=NotificationType.SYSTEM,
            title="Notice",
            message="Something happened",
            payload=SystemPayload(),
            priority=NotificationPriority.CRITICAL,
        ),
        now=now,
    )


def test_retry_requeues_recoverable_failures_with_fresh_budget(session, make_user):
    make_user(2)
    tasks = EmailTaskRepository(session)
    spent, recoverable, permanent, over_budget = (
        _notify(session, 2).email_tasks[0] for _ in range(4)
    )
    tasks.fail(permanent.id, error="bad address", permanent=True)
    tasks.fail(recoverable.id, error="timeout", permanent=False)
    tasks.reschedule(spent.id, retry_count=3, scheduled_for=NOW, error="timeout")
    tasks.fail(spent.id, error="timeout", permanent=False)
    tasks.reschedule(over_budget.id, retry_count=5, scheduled_for=NOW, error="timeout")
    tasks.fail(over_budget.id, error="timeout", permanent=False)
    session.commit()

    result = retry_failed_tasks(session, max_retries=3, now=NOW + timedelta(hours=1))

    assert (result.email_tasks, result.push_tasks, result.total) == (2, 0, 2)
    for task_id in (spent.id, recoverable.id):
        task = tasks.get(task_id)
        assert task.status is DeliveryStatus.PENDING
        assert task.retry_count == 0
        assert task.scheduled_for == NOW + timedelta(hours=1)
    assert tasks.get(over_budget.id).status is DeliveryStatus.FAILED
    assert tasks.get(permanent.id).status is DeliveryStatus.FAILED


def test_purge_respects_read_and_unread_retention(session, make_user):
    make_user(2)
    old = NOW - timedelta(days=100)
    old_unread = _notify(session, 2, now=old).notification
    old_read = _notify(session, 2, now=old).notification
    recent_read = _notify(session, 2, now=NOW - timedelta(days=5)).notification
    notifications = NotificationRepository(session)
    notifications.mark_as_read([old_read.id], user_id=2, read_at=NOW - timedelta(days=40))
    notifications.mark_as_read([recent_read.id], user_id=2, read_at=NOW - timedelta(days=2))
    session.commit()

    result = purge_old_records(
        session, read_after_days=30, unread_after_days=90, terminal_after_days=7, now=NOW
    )

    assert result.notifications == 2
    remaining = [n.id for n in notifications.list_for_user(2)]
    assert remaining == [recent_read.id]
    assert EmailTaskRepository(session).list_for_notification(old_unread.id) == []
    assert (
        session.query(NotificationDeliveryModel)
        .filter(NotificationDeliveryModel.notification_id == old_read.id)
        .count()
        == 0
    )


def test_purge_drops_finished_tasks_only(session, make_user):
    make_user(2)
    created = _notify(session, 2, now=NOW - timedelta(days=1))
    task = created.email_tasks[0]
    session.commit()

    # Open tasks are never purged, however old.
    result = purge_old_records(
        session, read_after_days=30, unread_after_days=90, terminal_after_days=0, now=NOW
    )
    assert result.email_tasks == 0

    EmailTaskRepository(session).mark_sent(task.id, sent_at=NOW)
    session.commit()
    result = purge_old_records(
        session,
        read_after_days=30,
        unread_after_days=90,
        terminal_after_days=7,
        now=now_utc() + timedelta(days=8),
    )
    assert result.email_tasks == 1
