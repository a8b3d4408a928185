"""Use case that stores one notification and queues its deliveries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from notifier.application.preferences import ChannelDecision, evaluate_channels
from notifier.config import Settings, get_settings
from notifier.domain.entities import (
    MESSAGE_MAX_LENGTH,
    PAYLOAD_TYPES,
    SELF_NOTIFICATION_ALLOWLIST,
    TITLE_MAX_LENGTH,
    Channel,
    DeliveryStatus,
    EmailTask,
    Notification,
    NotificationPayload,
    NotificationPriority,
    NotificationType,
    PushTask,
    Recipient,
    payload_matches,
    payload_to_dict,
)
from notifier.domain.errors import NotificationValidationError
from notifier.infrastructure.repositories import (
    DeliveryRecordRepository,
    DeviceRepository,
    EmailTaskRepository,
    NotificationRepository,
    PreferenceRepository,
    PushTaskRepository,
    UserRepository,
)
from notifier.utils import now_utc

logger = logging.getLogger(__name__)

PRIORITY_DELAYS: dict[NotificationPriority, timedelta] = {
    NotificationPriority.CRITICAL: timedelta(0),
    NotificationPriority.HIGH: timedelta(minutes=5),
    NotificationPriority.MEDIUM: timedelta(minutes=15),
    NotificationPriority.LOW: timedelta(minutes=30),
}

_ENTITY_PATHS = {
    "task": "/protected/tasks",
    "form": "/protected/forms",
    "approval": "/protected/approvals",
    "project": "/protected/projects",
    "organization": "/protected/organizations",
}


@dataclass(frozen=True)
class NotificationRequest:
    """A notification one rule wants to send to one user."""

    user_id: int
    type: NotificationType
    title: str
    message: str
    payload: NotificationPayload
    priority: NotificationPriority = NotificationPriority.MEDIUM
    entity_type: str | None = None
    entity_id: str | None = None
    created_by: int | None = None


@dataclass
class CreatedNotification:
    notification: Notification
    decision: ChannelDecision
    email_tasks: list[EmailTask] = field(default_factory=list)
    push_tasks: list[PushTask] = field(default_factory=list)


def delivery_time(created_at: datetime, priority: NotificationPriority) -> datetime:
    """Return when email and push deliveries for ``priority`` become due."""

    return created_at + PRIORITY_DELAYS[priority]


def notification_link(notification: Notification, base_url: str) -> str:
    """Return the page a user lands on when opening ``notification``."""

    action_url = getattr(notification.payload, "action_url", None)
    if action_url:
        return action_url
    base = base_url.rstrip("/")
    prefix = _ENTITY_PATHS.get(notification.entity_type or "")
    if prefix and notification.entity_id:
        return f"{base}{prefix}/{notification.entity_id}"
    return f"{base}/protected/notifications"


def validate_request(request: NotificationRequest) -> None:
    if request.type not in PAYLOAD_TYPES:
        raise NotificationValidationError(f"Unknown notification type '{request.type}'")
    if not payload_matches(request.type, request.payload):
        raise NotificationValidationError(
            f"Payload {type(request.payload).__name__} does not match type '{request.type.value}'"
        )
    if not request.user_id:
        raise NotificationValidationError("Notification recipient is required")
    if not request.title or len(request.title) > TITLE_MAX_LENGTH:
        raise NotificationValidationError(
            f"Notification title must be between 1 and {TITLE_MAX_LENGTH} characters"
        )
    if len(request.message) > MESSAGE_MAX_LENGTH:
        raise NotificationValidationError(
            f"Notification message must be at most {MESSAGE_MAX_LENGTH} characters"
        )


def is_self_notification(request: NotificationRequest) -> bool:
    return (
        request.created_by is not None
        and request.created_by == request.user_id
        and request.type not in SELF_NOTIFICATION_ALLOWLIST
    )


def create_notification(
    session: Session,
    request: NotificationRequest,
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> CreatedNotification | None:
    """Store ``request`` and queue its email and push deliveries.

    Returns ``None`` when the recipient is unknown, is inactive or filtered
    the notification out. The session is flushed but never committed.
    """

    validate_request(request)
    if is_self_notification(request):
        logger.debug(
            "Skipping %s notification: user %s triggered it", request.type.value, request.user_id
        )
        return None

    recipient = UserRepository(session).get(request.user_id)
    if recipient is None:
        logger.warning(
            "Skipping %s notification: recipient %s does not exist",
            request.type.value,
            request.user_id,
        )
        return None
    if not recipient.is_active:
        logger.debug("Skipping notification for inactive user %s", recipient.id)
        return None

    settings = settings or get_settings()
    moment = now or now_utc()
    preferences = PreferenceRepository(session)
    decision = evaluate_channels(
        request.type,
        preferences.get_settings(recipient.id),
        preferences.get_preference(recipient.id, request.type),
        moment,
        request.priority,
    )
    if not decision.record:
        return None

    notification = NotificationRepository(session).add(
        Notification(
            id=None,
            user_id=recipient.id,
            type=request.type,
            priority=request.priority,
            title=request.title,
            message=request.message,
            payload=request.payload,
            entity_type=request.entity_type,
            entity_id=request.entity_id,
            created_at=moment,
            created_by=request.created_by,
        )
    )
    created = CreatedNotification(notification=notification, decision=decision)

    records = DeliveryRecordRepository(session)
    if decision.in_app:
        records.create(
            notification.id, Channel.IN_APP, status=DeliveryStatus.SENT, delivered_at=moment
        )

    scheduled_for = delivery_time(moment, request.priority)
    if decision.email and recipient.email:
        created.email_tasks.append(
            _queue_email(session, notification, recipient, scheduled_for)
        )
        records.create(notification.id, Channel.EMAIL)

    if decision.push:
        created.push_tasks.extend(
            _queue_push(session, notification, scheduled_for, settings.app_base_url)
        )
        if created.push_tasks:
            records.create(notification.id, Channel.PUSH)

    return created


def _queue_email(
    session: Session,
    notification: Notification,
    recipient: Recipient,
    scheduled_for: datetime,
) -> EmailTask:
    return EmailTaskRepository(session).add(
        EmailTask(
            id=None,
            notification_id=notification.id,
            priority=notification.priority,
            scheduled_for=scheduled_for,
            to_email=recipient.email,
            to_name=recipient.full_name,
            subject=notification.title,
            template_id=notification.type.value,
            template_data={
                "notification_title": notification.title,
                "notification_message": notification.message,
                "notification_type": notification.type.value,
                "entity_type": notification.entity_type,
                "entity_id": notification.entity_id,
                "notification_data": payload_to_dict(notification.payload),
                "user_name": recipient.display_name,
            },
        )
    )


def _queue_push(
    session: Session,
    notification: Notification,
    scheduled_for: datetime,
    base_url: str,
) -> list[PushTask]:
    devices = DeviceRepository(session).list_for_user(
        notification.user_id, enabled_only=True
    )
    if not devices:
        return []

    click_action = notification_link(notification, base_url)
    payload = {
        "title": notification.title,
        "body": notification.message,
        "icon": "/icon-192x192.png",
        "badge": "/icon-72x72.png",
        "tag": f"notification-{notification.id}",
        "click_action": click_action,
        "data": {
            **payload_to_dict(notification.payload),
            "notification_id": notification.id,
            "type": notification.type.value,
            "entity_type": notification.entity_type,
            "entity_id": notification.entity_id,
            "priority": notification.priority.value,
            "url": click_action,
        },
    }
    repository = PushTaskRepository(session)
    return [
        repository.add(
            PushTask(
                id=None,
                notification_id=notification.id,
                priority=notification.priority,
                scheduled_for=scheduled_for,
                device_id=device.id,
                platform=device.platform.value,
                token=device.token,
                payload=payload,
            )
        )
        for device in devices
    ]


__all__ = [
    "CreatedNotification",
    "NotificationRequest",
    "PRIORITY_DELAYS",
    "create_notification",
    "delivery_time",
    "is_self_notification",
    "notification_link",
    "validate_request",
]
