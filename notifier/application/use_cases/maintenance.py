"""Operator sweeps: re-queue failed deliveries and purge old rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from notifier.infrastructure.repositories import (
    EmailTaskRepository,
    NotificationRepository,
    PushTaskRepository,
)
from notifier.utils import now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryResult:
    email_tasks: int
    push_tasks: int

    @property
    def total(self) -> int:
        return self.email_tasks + self.push_tasks


@dataclass(frozen=True)
class PurgeResult:
    notifications: int
    email_tasks: int
    push_tasks: int


def retry_failed_tasks(
    session: Session, *, max_retries: int, now: datetime | None = None
) -> RetryResult:
    """Re-queue failed, non-permanent tasks that used at most ``max_retries`` retries."""

    moment = now or now_utc()
    result = RetryResult(
        email_tasks=EmailTaskRepository(session).reset_failed(max_retries=max_retries, now=moment),
        push_tasks=PushTaskRepository(session).reset_failed(max_retries=max_retries, now=moment),
    )
    session.commit()
    logger.info(
        "Re-queued %d email and %d push deliveries", result.email_tasks, result.push_tasks
    )
    return result


def purge_old_records(
    session: Session,
    *,
    read_after_days: int,
    unread_after_days: int,
    terminal_after_days: int,
    now: datetime | None = None,
) -> PurgeResult:
    """Delete finished queue rows and notifications past their retention."""

    moment = now or now_utc()
    terminal_cutoff = moment - timedelta(days=terminal_after_days)
    email_tasks = EmailTaskRepository(session).purge_terminal(before=terminal_cutoff)
    push_tasks = PushTaskRepository(session).purge_terminal(before=terminal_cutoff)
    notifications = NotificationRepository(session).purge(
        read_before=moment - timedelta(days=read_after_days),
        unread_before=moment - timedelta(days=unread_after_days),
    )
    session.commit()

    result = PurgeResult(
        notifications=notifications, email_tasks=email_tasks, push_tasks=push_tasks
    )
    logger.info(
        "Purged %d notifications, %d email tasks and %d push tasks",
        result.notifications,
        result.email_tasks,
        result.push_tasks,
    )
    return result


__all__ = ["PurgeResult", "RetryResult", "purge_old_records", "retry_failed_tasks"]
