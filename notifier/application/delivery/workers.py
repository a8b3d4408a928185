"""Delivery workers that drain the email and push queues.

A worker run claims a batch of due tasks, renders each one, hands it to
its transport under a timeout and records the outcome on the task. Errors
are stored on the task; ``run_once`` itself never raises for a delivery
failure.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, ClassVar

from sqlalchemy.orm import Session

from notifier.config import Settings, get_settings
from notifier.domain.entities import (
    Channel,
    DeliveryStatus,
    DeliveryTask,
    EmailTask,
    NotificationPriority,
    PushTask,
)
from notifier.domain.errors import (
    EndpointGoneError,
    PermanentTransportError,
    TransientTransportError,
    TransportNotConfiguredError,
)
from notifier.infrastructure.email import EmailMessage
from notifier.infrastructure.email_templates import render_email
from notifier.infrastructure.push import PushMessage
from notifier.infrastructure.repositories import (
    DeliveryRecordRepository,
    DeliveryTaskRepository,
    DeviceRepository,
    EmailTaskRepository,
    PushTaskRepository,
)
from notifier.utils import now_utc

logger = logging.getLogger(__name__)

TRANSPORT_THREADS = 4


class _TransportBusy(Exception):
    """The call never started because every transport thread is still occupied."""


@dataclass
class DrainResult:
    """Counters describing one worker run."""

    claimed: int = 0
    sent: int = 0
    retried: int = 0
    failed: int = 0
    parked: int = 0
    skipped: int = 0


def next_attempt_at(
    retry_count: int, *, max_retries: int, base_delay: timedelta, now: datetime
) -> datetime | None:
    """Return when a transiently failed task runs again, or ``None`` when spent.

    ``retry_count`` is the number of retries already used; the delay doubles
    with every retry.
    """

    if retry_count >= max_retries:
        return None
    return now + base_delay * (2**retry_count)


class DeliveryWorker:
    """Shared claim, timeout and retry handling for a delivery queue."""

    channel: ClassVar[Channel]
    name: ClassVar[str]

    def __init__(
        self,
        session_factory: Callable[[], Session],
        transport: Any,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._session_factory = session_factory
        self._transport = transport
        self._settings = settings or get_settings()
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=TRANSPORT_THREADS, thread_name_prefix=f"{self.name}-transport"
        )

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def run_once(self) -> DrainResult:
        """Claim and deliver one batch of due tasks."""

        result = DrainResult()
        now = self._clock()
        stale_before = now - timedelta(seconds=self._settings.processing_timeout_seconds)
        session = self._session_factory()
        try:
            repository = self._repository(session)
            candidates = repository.list_claimable(
                now=now, stale_before=stale_before, limit=self._settings.claim_batch_size
            )
            if not candidates:
                return result

            for task in candidates:
                claimed = repository.try_claim(task.id, now=now, stale_before=stale_before)
                session.commit()
                if not claimed:
                    result.skipped += 1
                    continue
                result.claimed += 1
                if task.status is DeliveryStatus.PROCESSING:
                    if not self._resume_abandoned(session, repository, task, result):
                        session.commit()
                        continue
                self._deliver(session, repository, task, result)
                session.commit()
        finally:
            session.close()

        logger.info(
            "%s worker: %d claimed, %d sent, %d retried, %d failed, %d parked, %d skipped",
            self.name,
            result.claimed,
            result.sent,
            result.retried,
            result.failed,
            result.parked,
            result.skipped,
        )
        return result

    def _deliver(
        self,
        session: Session,
        repository: DeliveryTaskRepository,
        task: DeliveryTask,
        result: DrainResult,
    ) -> None:
        records = DeliveryRecordRepository(session)
        try:
            message = self._build_message(task)
            outcome = self._send_with_timeout(message)
        except (TransportNotConfiguredError, _TransportBusy) as exc:
            repository.park(task.id, str(exc))
            result.parked += 1
            logger.warning("%s task %s parked: %s", self.name, task.id, exc)
            return
        except EndpointGoneError as exc:
            self._handle_endpoint_gone(session, task, str(exc))
            result.failed += 1
            return
        except PermanentTransportError as exc:
            repository.fail(task.id, error=str(exc), permanent=True)
            records.mark_failed(task.notification_id, self.channel, str(exc))
            result.failed += 1
            logger.error("%s task %s failed permanently: %s", self.name, task.id, exc)
            return
        except TransientTransportError as exc:
            self._retry_or_fail(repository, records, task, str(exc), result)
            return
        except Exception as exc:
            logger.exception("%s task %s raised an unexpected error", self.name, task.id)
            self._retry_or_fail(repository, records, task, str(exc) or type(exc).__name__, result)
            return

        self._mark_sent(session, repository, task, outcome)
        records.mark_sent(task.notification_id, self.channel)
        result.sent += 1

    def _resume_abandoned(
        self,
        session: Session,
        repository: DeliveryTaskRepository,
        task: DeliveryTask,
        result: DrainResult,
    ) -> bool:
        """Charge the abandoned attempt; ``False`` when it was the last one."""

        error = "Delivery attempt abandoned by a previous worker"
        if task.retry_count >= self._settings.max_retries:
            repository.fail(task.id, error=error, permanent=False)
            DeliveryRecordRepository(session).mark_failed(task.notification_id, self.channel, error)
            result.failed += 1
            logger.error("%s task %s failed: %s", self.name, task.id, error)
            return False
        task.retry_count += 1
        return True

    def _retry_or_fail(
        self,
        repository: DeliveryTaskRepository,
        records: DeliveryRecordRepository,
        task: DeliveryTask,
        error: str,
        result: DrainResult,
    ) -> None:
        retry_at = next_attempt_at(
            task.retry_count,
            max_retries=self._settings.max_retries,
            base_delay=timedelta(seconds=self._settings.retry_base_delay_seconds),
            now=self._clock(),
        )
        if retry_at is None:
            repository.fail(task.id, error=error, permanent=False)
            records.mark_failed(task.notification_id, self.channel, error)
            result.failed += 1
            logger.error(
                "%s task %s failed after %d retries: %s",
                self.name,
                task.id,
                task.retry_count,
                error,
            )
            return

        repository.reschedule(
            task.id, retry_count=task.retry_count + 1, scheduled_for=retry_at, error=error
        )
        result.retried += 1
        logger.warning(
            "%s task %s will retry at %s: %s", self.name, task.id, retry_at.isoformat(), error
        )

    def _send_with_timeout(self, message: Any) -> Any:
        timeout = self._settings.transport_timeout_seconds
        future = self._executor.submit(self._transport.send, message)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            if future.cancel():
                raise _TransportBusy(
                    "All transport threads are busy with calls that have not returned"
                ) from exc
            raise TransientTransportError(
                f"Transport call timed out after {timeout:g} seconds"
            ) from exc

    def _repository(self, session: Session) -> DeliveryTaskRepository:
        raise NotImplementedError

    def _build_message(self, task: DeliveryTask) -> Any:
        raise NotImplementedError

    def _mark_sent(
        self,
        session: Session,
        repository: DeliveryTaskRepository,
        task: DeliveryTask,
        outcome: Any,
    ) -> None:
        repository.mark_sent(task.id, sent_at=self._clock())

    def _handle_endpoint_gone(self, session: Session, task: DeliveryTask, error: str) -> None:
        self._repository(session).fail(task.id, error=error, permanent=True)
        DeliveryRecordRepository(session).mark_failed(task.notification_id, self.channel, error)


class EmailDeliveryWorker(DeliveryWorker):
    channel = Channel.EMAIL
    name = "email"

    def _repository(self, session: Session) -> EmailTaskRepository:
        return EmailTaskRepository(session)

    def _build_message(self, task: EmailTask) -> EmailMessage:
        user_name = (
            task.to_name
            or task.template_data.get("user_name")
            or task.to_email.split("@")[0]
        )
        rendered = render_email(
            task.template_id,
            task.template_data,
            fallback_subject=task.subject,
            user_name=user_name,
            base_url=self._settings.app_base_url,
        )
        return EmailMessage(
            to_email=task.to_email,
            to_name=task.to_name,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
        )

    def _mark_sent(
        self,
        session: Session,
        repository: EmailTaskRepository,
        task: EmailTask,
        outcome: Any,
    ) -> None:
        repository.mark_sent(task.id, sent_at=self._clock(), provider_message_id=outcome)


class PushDeliveryWorker(DeliveryWorker):
    channel = Channel.PUSH
    name = "push"

    _URGENT = frozenset({NotificationPriority.HIGH, NotificationPriority.CRITICAL})

    def _repository(self, session: Session) -> PushTaskRepository:
        return PushTaskRepository(session)

    def _build_message(self, task: PushTask) -> PushMessage:
        return PushMessage(
            platform=task.platform,
            token=task.token,
            payload=task.payload,
            urgency="high" if task.priority in self._URGENT else "normal",
        )

    def _mark_sent(
        self,
        session: Session,
        repository: PushTaskRepository,
        task: PushTask,
        outcome: Any,
    ) -> None:
        repository.mark_sent(task.id, sent_at=self._clock())
        if task.device_id is not None:
            DeviceRepository(session).touch(task.device_id)

    def _handle_endpoint_gone(self, session: Session, task: PushTask, error: str) -> None:
        """Disable the device and fail everything still queued for it."""

        if task.device_id is None:
            super()._handle_endpoint_gone(session, task, error)
            return

        DeviceRepository(session).disable(task.device_id)
        notification_ids = PushTaskRepository(session).fail_open_for_device(
            task.device_id, error=error
        )
        records = DeliveryRecordRepository(session)
        for notification_id in notification_ids:
            records.mark_failed(notification_id, Channel.PUSH, error)
        logger.warning(
            "Disabled device %s after the push service reported it gone; %d task(s) failed",
            task.device_id,
            len(notification_ids),
        )


__all__ = [
    "DeliveryWorker",
    "DrainResult",
    "EmailDeliveryWorker",
    "PushDeliveryWorker",
    "next_attempt_at",
]
