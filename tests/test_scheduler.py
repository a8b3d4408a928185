"""Periodic draining through the APScheduler-backed scheduler."""

from __future__ import annotations

import threading

from notifier.application.delivery import DeliveryScheduler, DrainResult, ScheduledWorker


class FakeWorker:
    def __init__(self, name: str) -> None:
        self.name = name
        self.runs = 0
        self.closed = False
        self.ran = threading.Event()

    def run_once(self) -> DrainResult:
        self.runs += 1
        self.ran.set()
        return DrainResult(claimed=1, sent=1)

    def close(self) -> None:
        self.closed = True


def test_full_queue_drops_the_tick():
    worker = FakeWorker("email")
    scheduler = DeliveryScheduler([ScheduledWorker(worker, 60)], queue_size=1)

    assert scheduler.request_drain(worker)
    assert not scheduler.request_drain(worker)


def test_drain_now_runs_every_worker_inline():
    email, push = FakeWorker("email"), FakeWorker("push")
    scheduler = DeliveryScheduler([ScheduledWorker(email, 300), ScheduledWorker(push, 120)])

    results = scheduler.drain_now()

    assert set(results) == {"email", "push"}
    assert results["push"].sent == 1
    assert (email.runs, push.runs) == (1, 1)


def test_started_scheduler_registers_jobs_and_consumes_requests():
    worker = FakeWorker("push")
    scheduler = DeliveryScheduler([ScheduledWorker(worker, 3600)], thread_count=1)

    scheduler.start()
    try:
        assert scheduler.running
        job = scheduler._scheduler.get_job("drain-push")
        assert job is not None
        assert job.max_instances == 1

        assert scheduler.request_drain(worker)
        assert worker.ran.wait(timeout=5)
    finally:
        scheduler.shutdown()

    assert not scheduler.running
    assert worker.closed
