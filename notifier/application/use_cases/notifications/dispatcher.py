"""Entry point used by business code to report domain events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable

from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session, SessionTransaction

from notifier.config import Settings, get_settings
from notifier.domain.entities import DomainEvent, Notification
from notifier.infrastructure.notifications import dispatch_notification
from notifier.utils import now_utc

from .create_notification import CreatedNotification, create_notification
from .rules import DEFAULT_RULES, Rule

logger = logging.getLogger(__name__)

_PENDING_REALTIME_KEY = "notifier.pending_realtime"


class DispatchOutcome(str, Enum):
    CREATED = "created"
    NO_OP = "no_op"
    REJECTED = "rejected"


@dataclass
class DispatchResult:
    outcome: DispatchOutcome
    notifications: list[Notification] = field(default_factory=list)
    error: str | None = None


def _publish_pending(session: Session) -> None:
    # Releasing a SAVEPOINT also fires after_commit.
    if session.get_nested_transaction() is not None:
        return
    pending = session.info.pop(_PENDING_REALTIME_KEY, [])
    for publish, notification in pending:
        try:
            publish(notification)
        except Exception:
            logger.exception(
                "Realtime publish failed for notification %s", notification.id
            )


def _discard_pending(session: Session, transaction: SessionTransaction) -> None:
    # Runs after _publish_pending on commit, so only unpublished copies remain.
    if transaction.parent is None:
        session.info.pop(_PENDING_REALTIME_KEY, None)


def _publish_after_commit(
    session: Session,
    notifications: Iterable[Notification],
    publish: Callable[[Notification], None],
) -> None:
    """Hold realtime copies until the caller's outermost transaction commits."""

    if _PENDING_REALTIME_KEY not in session.info:
        session.info[_PENDING_REALTIME_KEY] = []
        if not sa_event.contains(session, "after_commit", _publish_pending):
            sa_event.listen(session, "after_commit", _publish_pending)
            sa_event.listen(session, "after_transaction_end", _discard_pending)
    session.info[_PENDING_REALTIME_KEY].extend(
        (publish, notification) for notification in notifications
    )


class EventDispatcher:
    """Map domain events to rules and store the resulting notifications.

    Every event is processed inside its own SAVEPOINT: either all of its
    notifications, tasks and delivery records are written or none are. A
    failure is logged and reported as ``REJECTED``; it never reaches the
    caller's transaction.
    """

    def __init__(
        self,
        rules: dict[type[DomainEvent], Rule] | None = None,
        *,
        settings: Settings | None = None,
        publisher: Callable[[Notification], None] = dispatch_notification,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._rules: dict[type[DomainEvent], Rule] = dict(
            DEFAULT_RULES if rules is None else rules
        )
        self._settings = settings
        self._publisher = publisher
        self._clock = clock

    def register(self, event_type: type[DomainEvent], rule: Rule) -> None:
        self._rules[event_type] = rule

    def dispatch(self, session: Session, event: DomainEvent) -> DispatchResult:
        event_name = type(event).__name__
        rule = self._rules.get(type(event))
        if rule is None:
            logger.warning("No notification rule registered for %s", event_name)
            return DispatchResult(
                DispatchOutcome.REJECTED, error=f"No rule registered for {event_name}"
            )

        settings = self._settings or get_settings()
        now = self._clock()
        try:
            with session.begin_nested():
                created: list[CreatedNotification] = []
                for request in rule(event, now):
                    result = create_notification(session, request, settings=settings, now=now)
                    if result is not None:
                        created.append(result)
        except Exception as exc:
            logger.exception("Discarding notifications for %s", event_name)
            return DispatchResult(DispatchOutcome.REJECTED, error=str(exc))

        if not created:
            logger.info("%s produced no notifications after filtering", event_name)
            return DispatchResult(DispatchOutcome.NO_OP)

        _publish_after_commit(
            session,
            [item.notification for item in created if item.decision.in_app],
            self._publisher,
        )
        logger.info("%s created %d notification(s)", event_name, len(created))
        return DispatchResult(
            DispatchOutcome.CREATED, [item.notification for item in created]
        )


__all__ = ["DispatchOutcome", "DispatchResult", "EventDispatcher"]
