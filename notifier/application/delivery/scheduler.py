"""Run the delivery workers on a schedule.

An APScheduler ``BackgroundScheduler`` ticks every worker at its own
interval. A tick only enqueues a drain request; a fixed pool of threads
takes requests off a bounded queue and runs the worker. When the queue is
full the tick is dropped and the next one picks up the work.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Sequence

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from notifier.config import Settings
from notifier.infrastructure.email import SendGridEmailTransport
from notifier.infrastructure.push import WebPushTransport

from .workers import DeliveryWorker, DrainResult, EmailDeliveryWorker, PushDeliveryWorker

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(frozen=True)
class ScheduledWorker:
    worker: DeliveryWorker
    interval_seconds: float


class DeliveryScheduler:
    def __init__(
        self,
        jobs: Sequence[ScheduledWorker],
        *,
        thread_count: int = 2,
        queue_size: int = 8,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self._jobs = list(jobs)
        self._thread_count = thread_count
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self._threads: list[threading.Thread] = []
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            logger.info("Delivery scheduler already running, skipping start")
            return

        for index in range(self._thread_count):
            thread = threading.Thread(
                target=self._consume, name=f"delivery-worker-{index}", daemon=True
            )
            thread.start()
            self._threads.append(thread)

        for job in self._jobs:
            self._scheduler.add_job(
                self.request_drain,
                trigger="interval",
                seconds=job.interval_seconds,
                args=[job.worker],
                id=f"drain-{job.worker.name}",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
        self._scheduler.start()
        self._started = True
        logger.info(
            "Delivery scheduler started: %s",
            ", ".join(f"{job.worker.name} every {job.interval_seconds:g}s" for job in self._jobs),
        )

    def request_drain(self, worker: DeliveryWorker) -> bool:
        """Queue a run of ``worker``; ``False`` when the queue is full."""

        try:
            self._queue.put_nowait(worker)
        except queue.Full:
            logger.warning("Drain queue full; skipping %s tick", worker.name)
            return False
        return True

    def drain_now(self) -> dict[str, DrainResult]:
        """Run every worker once in the calling thread."""

        return {job.worker.name: job.worker.run_once() for job in self._jobs}

    def shutdown(self, *, wait: bool = True) -> None:
        if not self._started:
            for job in self._jobs:
                job.worker.close()
            return
        self._scheduler.shutdown(wait=False)
        for _ in self._threads:
            self._queue.put(_STOP)
        if wait:
            for thread in self._threads:
                thread.join()
        self._threads.clear()
        for job in self._jobs:
            job.worker.close()
        self._started = False
        logger.info("Delivery scheduler stopped")

    def _consume(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                item.run_once()
            except Exception:
                logger.exception("Delivery worker %s crashed", getattr(item, "name", item))
            finally:
                self._queue.task_done()


def build_delivery_scheduler(
    settings: Settings, session_factory: Callable[[], Session]
) -> DeliveryScheduler:
    """Wire the SendGrid and Web Push workers from ``settings``."""

    email_worker = EmailDeliveryWorker(
        session_factory, SendGridEmailTransport.from_settings(settings), settings=settings
    )
    push_worker = PushDeliveryWorker(
        session_factory, WebPushTransport.from_settings(settings), settings=settings
    )
    return DeliveryScheduler(
        [
            ScheduledWorker(email_worker, settings.email_drain_interval_seconds),
            ScheduledWorker(push_worker, settings.push_drain_interval_seconds),
        ],
        thread_count=settings.worker_threads,
        queue_size=settings.drain_queue_size,
    )


__all__ = [
    "DeliveryScheduler",
    "ScheduledWorker",
    "build_delivery_scheduler",
]
