"""Background delivery of queued emails and push messages."""

from .scheduler import DeliveryScheduler, ScheduledWorker, build_delivery_scheduler
from .workers import (
    DeliveryWorker,
    DrainResult,
    EmailDeliveryWorker,
    PushDeliveryWorker,
    next_attempt_at,
)

__all__ = [
    "DeliveryScheduler",
    "DeliveryWorker",
    "DrainResult",
    "EmailDeliveryWorker",
    "PushDeliveryWorker",
    "ScheduledWorker",
    "build_delivery_scheduler",
    "next_attempt_at",
]
