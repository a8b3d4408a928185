"""Persistence helpers for the email and push delivery queues.

Every state transition is a conditional ``UPDATE`` so that concurrent
workers never move the same task twice.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, ClassVar

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session

from notifier.domain.entities import (
    CLAIMABLE_STATUSES,
    OPEN_STATUSES,
    DeliveryStatus,
    DeliveryTask,
    EmailTask,
    NotificationPriority,
    PushTask,
)
from notifier.infrastructure.models import EmailTaskModel, PushTaskModel
from notifier.utils import ensure_utc, now_utc, to_naive_utc

_CLAIMABLE_VALUES = [status.value for status in CLAIMABLE_STATUSES]
_OPEN_VALUES = [status.value for status in OPEN_STATUSES]
_TERMINAL_VALUES = [DeliveryStatus.SENT.value, DeliveryStatus.FAILED.value]


class DeliveryTaskRepository:
    """Queue operations shared by the email and push tables."""

    model: ClassVar[Any]

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, task_id: int) -> DeliveryTask | None:
        model = self.session.get(self.model, task_id)
        return self._to_entity(model) if model else None

    def add(self, task: DeliveryTask) -> DeliveryTask:
        model = self.model()
        self._apply_common(model, task)
        self._apply_specific(model, task)
        self.session.add(model)
        self.session.flush()
        return self._to_entity(model)

    def list_for_notification(self, notification_id: int) -> Sequence[DeliveryTask]:
        query = (
            self.session.query(self.model)
            .filter(self.model.notification_id == notification_id)
            .order_by(self.model.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def list_claimable(
        self, *, now: datetime, stale_before: datetime, limit: int
    ) -> Sequence[DeliveryTask]:
        """Return due tasks and abandoned claims, most urgent first."""

        query = (
            self.session.query(self.model)
            .filter(self._claimable_clause(now, stale_before))
            .order_by(
                self.model.priority_rank.desc(),
                self.model.scheduled_for.asc(),
                self.model.id.asc(),
            )
            .limit(limit)
        )
        return [self._to_entity(model) for model in query.all()]

    def try_claim(self, task_id: int, *, now: datetime, stale_before: datetime) -> bool:
        """Move the task to ``processing``; ``False`` when another worker won.

        Reclaiming an abandoned ``processing`` task counts as a spent attempt.
        """

        updated = (
            self.session.query(self.model)
            .filter(self.model.id == task_id)
            .filter(self._claimable_clause(now, stale_before))
            .update(
                {
                    self.model.retry_count: case(
                        (
                            self.model.status == DeliveryStatus.PROCESSING.value,
                            self.model.retry_count + 1,
                        ),
                        else_=self.model.retry_count,
                    ),
                    self.model.status: DeliveryStatus.PROCESSING.value,
                    self.model.claimed_at: to_naive_utc(now),
                    self.model.updated_at: to_naive_utc(now),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    def park(self, task_id: int, reason: str) -> None:
        self._transition(
            task_id,
            {
                self.model.status: DeliveryStatus.QUEUED_FOR_DELIVERY.value,
                self.model.claimed_at: None,
                self.model.error_message: reason,
            },
        )

    def mark_sent(self, task_id: int, *, sent_at: datetime | None = None) -> None:
        self._transition(task_id, self._sent_values(sent_at))

    def reschedule(
        self, task_id: int, *, retry_count: int, scheduled_for: datetime, error: str
    ) -> None:
        self._transition(
            task_id,
            {
                self.model.status: DeliveryStatus.PENDING.value,
                self.model.retry_count: retry_count,
                self.model.scheduled_for: to_naive_utc(scheduled_for),
                self.model.claimed_at: None,
                self.model.error_message: error,
            },
        )

    def fail(self, task_id: int, *, error: str, permanent: bool) -> None:
        self._transition(
            task_id,
            {
                self.model.status: DeliveryStatus.FAILED.value,
                self.model.claimed_at: None,
                self.model.error_message: error,
                self.model.permanent_failure: permanent,
            },
        )

    def reset_failed(self, *, max_retries: int, now: datetime | None = None) -> int:
        """Send non-permanent failures back to the queue with a fresh retry budget.

        Tasks that used more than ``max_retries`` retries stay failed.
        """

        moment = to_naive_utc(now or now_utc())
        return (
            self.session.query(self.model)
            .filter(self.model.status == DeliveryStatus.FAILED.value)
            .filter(self.model.permanent_failure.is_(False))
            .filter(self.model.retry_count <= max_retries)
            .update(
                {
                    self.model.status: DeliveryStatus.PENDING.value,
                    self.model.retry_count: 0,
                    self.model.scheduled_for: moment,
                    self.model.claimed_at: None,
                    self.model.updated_at: moment,
                },
                synchronize_session=False,
            )
        )

    def purge_terminal(self, *, before: datetime) -> int:
        cutoff = to_naive_utc(before)
        return (
            self.session.query(self.model)
            .filter(self.model.status.in_(_TERMINAL_VALUES))
            .filter(func.coalesce(self.model.updated_at, self.model.created_at) < cutoff)
            .delete(synchronize_session=False)
        )

    def _claimable_clause(self, now: datetime, stale_before: datetime):
        return or_(
            and_(
                self.model.status.in_(_CLAIMABLE_VALUES),
                self.model.scheduled_for <= to_naive_utc(now),
            ),
            and_(
                self.model.status == DeliveryStatus.PROCESSING.value,
                self.model.claimed_at < to_naive_utc(stale_before),
            ),
        )

    def _sent_values(self, sent_at: datetime | None) -> dict:
        return {
            self.model.status: DeliveryStatus.SENT.value,
            self.model.sent_at: to_naive_utc(sent_at or now_utc()),
            self.model.claimed_at: None,
            self.model.error_message: None,
        }

    def _transition(self, task_id: int, values: dict) -> None:
        values = {**values, self.model.updated_at: to_naive_utc(now_utc())}
        self.session.query(self.model).filter(self.model.id == task_id).update(
            values, synchronize_session=False
        )

    @staticmethod
    def _apply_common(model: Any, task: DeliveryTask) -> None:
        model.notification_id = task.notification_id
        model.priority = task.priority.value
        model.priority_rank = task.priority.rank
        model.status = task.status.value
        model.scheduled_for = to_naive_utc(task.scheduled_for or now_utc())
        model.retry_count = task.retry_count
        model.error_message = task.error_message
        model.permanent_failure = task.permanent_failure
        model.claimed_at = to_naive_utc(task.claimed_at)
        model.sent_at = to_naive_utc(task.sent_at)
        if task.created_at is not None:
            model.created_at = to_naive_utc(task.created_at)

    @staticmethod
    def _common_fields(model: Any) -> dict[str, Any]:
        return {
            "id": model.id,
            "notification_id": model.notification_id,
            "priority": NotificationPriority(model.priority),
            "status": DeliveryStatus(model.status),
            "scheduled_for": ensure_utc(model.scheduled_for),
            "retry_count": model.retry_count or 0,
            "error_message": model.error_message,
            "permanent_failure": bool(model.permanent_failure),
            "claimed_at": ensure_utc(model.claimed_at),
            "sent_at": ensure_utc(model.sent_at),
            "created_at": ensure_utc(model.created_at),
            "updated_at": ensure_utc(model.updated_at),
        }

    def _apply_specific(self, model: Any, task: DeliveryTask) -> None:
        raise NotImplementedError

    def _to_entity(self, model: Any) -> DeliveryTask:
        raise NotImplementedError


class EmailTaskRepository(DeliveryTaskRepository):
    model = EmailTaskModel

    def mark_sent(
        self,
        task_id: int,
        *,
        sent_at: datetime | None = None,
        provider_message_id: str | None = None,
    ) -> None:
        values = self._sent_values(sent_at)
        values[EmailTaskModel.provider_message_id] = provider_message_id
        self._transition(task_id, values)

    def _apply_specific(self, model: EmailTaskModel, task: EmailTask) -> None:
        model.to_email = task.to_email
        model.to_name = task.to_name
        model.subject = task.subject
        model.template_id = task.template_id
        model.template_data = dict(task.template_data)
        model.provider_message_id = task.provider_message_id

    def _to_entity(self, model: EmailTaskModel) -> EmailTask:
        return EmailTask(
            **self._common_fields(model),
            to_email=model.to_email,
            to_name=model.to_name,
            subject=model.subject,
            template_id=model.template_id,
            template_data=dict(model.template_data or {}),
            provider_message_id=model.provider_message_id,
        )


class PushTaskRepository(DeliveryTaskRepository):
    model = PushTaskModel

    def fail_open_for_device(self, device_id: int, *, error: str) -> list[int]:
        """Fail every open task addressed to ``device_id``.

        Returns the notification ids of the tasks that were failed.
        """

        query = (
            self.session.query(PushTaskModel)
            .filter(PushTaskModel.device_id == device_id)
            .filter(PushTaskModel.status.in_(_OPEN_VALUES))
        )
        notification_ids = sorted({model.notification_id for model in query.all()})
        query.update(
            {
                PushTaskModel.status: DeliveryStatus.FAILED.value,
                PushTaskModel.claimed_at: None,
                PushTaskModel.error_message: error,
                PushTaskModel.permanent_failure: True,
                PushTaskModel.updated_at: to_naive_utc(now_utc()),
            },
            synchronize_session=False,
        )
        return notification_ids

    def _apply_specific(self, model: PushTaskModel, task: PushTask) -> None:
        model.device_id = task.device_id
        model.platform = task.platform
        model.token = task.token
        model.payload = dict(task.payload)

    def _to_entity(self, model: PushTaskModel) -> PushTask:
        return PushTask(
            **self._common_fields(model),
            device_id=model.device_id,
            platform=model.platform,
            token=model.token,
            payload=dict(model.payload or {}),
        )


__all__ = ["DeliveryTaskRepository", "EmailTaskRepository", "PushTaskRepository"]
