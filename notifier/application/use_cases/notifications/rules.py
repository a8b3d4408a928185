"""Rules that turn domain events into notification requests.

A rule receives the event and the current time and returns one
:class:`NotificationRequest` per recipient. Preferences and self-action
suppression are applied later, when the requests are stored.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Callable, Iterable

from notifier.domain.entities import (
    ApprovalCommentAdded,
    ApprovalRequested,
    ApprovalRequestedPayload,
    ApprovalResponseSubmitted,
    ApprovalStatusChanged,
    ApprovalStatusChangedPayload,
    CommentMentionPayload,
    DomainEvent,
    EntityAssigned,
    EntityAssignedPayload,
    EntityUnassigned,
    FormAssignedPayload,
    FormUnassignedPayload,
    NotificationPriority,
    NotificationType,
    OrganizationAddedPayload,
    OrganizationMemberAdded,
    ProjectAddedPayload,
    ProjectMemberAdded,
    SystemAnnouncement,
    SystemPayload,
    TaskAssignedPayload,
    TaskCommentAdded,
    TaskCommentPayload,
    TaskStatusChanged,
    TaskUnassignedPayload,
    TaskUpdatedPayload,
)
from notifier.utils import ensure_utc

from .create_notification import NotificationRequest
from .templates import render_template

Rule = Callable[[DomainEvent, datetime], list[NotificationRequest]]

MENTION_PATTERN = re.compile(r"@\[(\d+)\]")
APPROVAL_URGENT_WINDOW = timedelta(days=1)
COMMENT_PREVIEW_LENGTH = 100

_URGENT_TASK_PRIORITIES = frozenset({"urgent", "high"})
_ENTITY_TYPE_ALIASES = {
    "tasks": "task",
    "forms": "form",
    "approvals": "approval",
    "site_diaries": "site_diary",
    "entries": "entry",
}

UNKNOWN_ACTOR = "Someone"


def task_priority_to_notification(task_priority: str | None) -> NotificationPriority:
    """Urgent and high tasks notify at high priority; everything else at medium."""

    if task_priority and task_priority.strip().lower() in _URGENT_TASK_PRIORITIES:
        return NotificationPriority.HIGH
    return NotificationPriority.MEDIUM


def approval_priority(due_at: datetime | None, now: datetime) -> NotificationPriority:
    """Approvals due within a day are critical for their approvers."""

    if due_at is not None and ensure_utc(due_at) - ensure_utc(now) <= APPROVAL_URGENT_WINDOW:
        return NotificationPriority.CRITICAL
    return NotificationPriority.HIGH


def extract_mentions(content: str) -> list[int]:
    """Return the user ids mentioned as ``@[<id>]`` in ``content``, in order."""

    return _unique(int(match) for match in MENTION_PATTERN.findall(content or ""))


def normalize_entity_type(entity_type: str) -> str:
    value = (entity_type or "").strip().lower()
    return _ENTITY_TYPE_ALIASES.get(value, value)


def _unique(user_ids: Iterable[int | None], *, exclude: Iterable[int | None] = ()) -> list[int]:
    excluded = {user_id for user_id in exclude if user_id is not None}
    seen: set[int] = set()
    result: list[int] = []
    for user_id in user_ids:
        if not user_id or user_id in excluded or user_id in seen:
            continue
        seen.add(user_id)
        result.append(user_id)
    return result


def _preview(content: str) -> str:
    text = MENTION_PATTERN.sub("", content or "").strip()
    if len(text) <= COMMENT_PREVIEW_LENGTH:
        return text
    return text[:COMMENT_PREVIEW_LENGTH].rstrip() + "..."


def _isoformat(value: datetime | None) -> str | None:
    return ensure_utc(value).isoformat() if value is not None else None


def on_entity_assigned(event: EntityAssigned, now: datetime) -> list[NotificationRequest]:
    entity_type = normalize_entity_type(event.entity_type)
    assigner_name = event.actor_name or UNKNOWN_ACTOR

    if entity_type == "task":
        title, message = render_template(
            NotificationType.TASK_ASSIGNED,
            assigner_name=assigner_name,
            task_title=event.entity_title,
        )
        return [
            NotificationRequest(
                user_id=event.assignee_id,
                type=NotificationType.TASK_ASSIGNED,
                title=title,
                message=message,
                payload=TaskAssignedPayload(
                    task_id=event.entity_id,
                    task_title=event.entity_title,
                    project_id=event.project_id,
                    project_name=event.project_name,
                    assigned_by=event.actor_id,
                    assigner_name=event.actor_name,
                    due_date=_isoformat(event.due_date),
                    task_priority=event.task_priority,
                ),
                priority=task_priority_to_notification(event.task_priority),
                entity_type="task",
                entity_id=event.entity_id,
                created_by=event.actor_id,
            )
        ]

    if entity_type == "form":
        title, message = render_template(
            NotificationType.FORM_ASSIGNED,
            assigner_name=assigner_name,
            form_name=event.entity_title,
        )
        return [
            NotificationRequest(
                user_id=event.assignee_id,
                type=NotificationType.FORM_ASSIGNED,
                title=title,
                message=message,
                payload=FormAssignedPayload(
                    form_id=event.entity_id,
                    form_title=event.entity_title,
                    project_id=event.project_id,
                    project_name=event.project_name,
                    assigned_by=event.actor_id,
                    assigner_name=event.actor_name,
                ),
                priority=NotificationPriority.HIGH,
                entity_type="form",
                entity_id=event.entity_id,
                created_by=event.actor_id,
            )
        ]

    title, message = render_template(
        NotificationType.ENTITY_ASSIGNED,
        assigner_name=assigner_name,
        entity_title=event.entity_title,
    )
    return [
        NotificationRequest(
            user_id=event.assignee_id,
            type=NotificationType.ENTITY_ASSIGNED,
            title=title,
            message=message,
            payload=EntityAssignedPayload(
                entity_type=entity_type,
                entity_id=event.entity_id,
                entity_title=event.entity_title,
                assigned_by=event.actor_id,
                assigner_name=event.actor_name,
            ),
            priority=NotificationPriority.MEDIUM,
            entity_type=entity_type,
            entity_id=event.entity_id,
            created_by=event.actor_id,
        )
    ]


def on_entity_unassigned(event: EntityUnassigned, now: datetime) -> list[NotificationRequest]:
    entity_type = normalize_entity_type(event.entity_type)

    if entity_type == "task":
        title, message = render_template(
            NotificationType.TASK_UNASSIGNED, task_title=event.entity_title
        )
        return [
            NotificationRequest(
                user_id=event.assignee_id,
                type=NotificationType.TASK_UNASSIGNED,
                title=title,
                message=message,
                payload=TaskUnassignedPayload(
                    task_id=event.entity_id,
                    task_title=event.entity_title,
                    project_id=event.project_id,
                    project_name=event.project_name,
                    unassigned_by=event.actor_id,
                ),
                priority=NotificationPriority.LOW,
                entity_type="task",
                entity_id=event.entity_id,
                created_by=event.actor_id,
            )
        ]

    if entity_type == "form":
        title, message = render_template(
            NotificationType.FORM_UNASSIGNED, form_name=event.entity_title
        )
        return [
            NotificationRequest(
                user_id=event.assignee_id,
                type=NotificationType.FORM_UNASSIGNED,
                title=title,
                message=message,
                payload=FormUnassignedPayload(
                    form_id=event.entity_id,
                    form_title=event.entity_title,
                    project_id=event.project_id,
                    project_name=event.project_name,
                    unassigned_by=event.actor_id,
                ),
                priority=NotificationPriority.LOW,
                entity_type="form",
                entity_id=event.entity_id,
                created_by=event.actor_id,
            )
        ]

    # Other entities have no unassignment notification.
    return []


def on_task_status_changed(event: TaskStatusChanged, now: datetime) -> list[NotificationRequest]:
    if event.old_status == event.new_status:
        return []

    title, message = render_template(
        NotificationType.TASK_UPDATED,
        task_title=event.task_title,
        updater_name=event.actor_name or UNKNOWN_ACTOR,
    )
    payload = TaskUpdatedPayload(
        task_id=event.task_id,
        task_title=event.task_title,
        old_status=event.old_status,
        new_status=event.new_status,
        updated_by=event.actor_id,
        updater_name=event.actor_name,
        project_name=event.project_name,
    )
    priority = task_priority_to_notification(event.task_priority)
    return [
        NotificationRequest(
            user_id=user_id,
            type=NotificationType.TASK_UPDATED,
            title=title,
            message=message,
            payload=payload,
            priority=priority,
            entity_type="task",
            entity_id=event.task_id,
            created_by=event.actor_id,
        )
        for user_id in _unique(event.assignee_ids, exclude=[event.actor_id])
    ]


def on_task_comment_added(event: TaskCommentAdded, now: datetime) -> list[NotificationRequest]:
    """Notify mentioned users and assignees; a mention wins over the assignee copy."""

    commenter_name = event.actor_name or UNKNOWN_ACTOR
    preview = _preview(event.content)
    mentioned = _unique(extract_mentions(event.content), exclude=[event.actor_id])
    assignees = _unique(event.assignee_ids, exclude=[event.actor_id, *mentioned])

    requests: list[NotificationRequest] = []
    if mentioned:
        title, message = render_template(
            NotificationType.COMMENT_MENTION,
            commenter_name=commenter_name,
            task_title=event.task_title,
        )
        payload = CommentMentionPayload(
            task_id=event.task_id,
            task_title=event.task_title,
            comment_id=event.comment_id,
            comment_preview=preview,
            project_name=event.project_name,
            commenter_id=event.actor_id,
            commenter_name=event.actor_name,
        )
        requests.extend(
            NotificationRequest(
                user_id=user_id,
                type=NotificationType.COMMENT_MENTION,
                title=title,
                message=message,
                payload=payload,
                priority=NotificationPriority.HIGH,
                entity_type="task",
                entity_id=event.task_id,
                created_by=event.actor_id,
            )
            for user_id in mentioned
        )

    if assignees:
        title, message = render_template(
            NotificationType.TASK_COMMENT,
            commenter_name=commenter_name,
            task_title=event.task_title,
        )
        payload = TaskCommentPayload(
            task_id=event.task_id,
            task_title=event.task_title,
            comment_id=event.comment_id,
            comment_preview=preview,
            project_name=event.project_name,
            commenter_id=event.actor_id,
            commenter_name=event.actor_name,
        )
        requests.extend(
            NotificationRequest(
                user_id=user_id,
                type=NotificationType.TASK_COMMENT,
                title=title,
                message=message,
                payload=payload,
                priority=NotificationPriority.MEDIUM,
                entity_type="task",
                entity_id=event.task_id,
                created_by=event.actor_id,
            )
            for user_id in assignees
        )
    return requests


def on_approval_requested(event: ApprovalRequested, now: datetime) -> list[NotificationRequest]:
    """Confirm the request to its author and ask every approver to review it."""

    requester_name = event.requester_name or UNKNOWN_ACTOR
    due_at = _isoformat(event.due_at)

    title, message = render_template(
        NotificationType.APPROVAL_REQUESTED,
        "requester_confirmation",
        entity_title=event.entity_title,
    )
    requests = [
        NotificationRequest(
            user_id=event.requester_id,
            type=NotificationType.APPROVAL_REQUESTED,
            title=title,
            message=message,
            payload=ApprovalRequestedPayload(
                approval_id=event.approval_id,
                entity_title=event.entity_title,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
                requested_by=event.requester_id,
                requester_name=event.requester_name,
                role="requester",
                due_at=due_at,
            ),
            priority=NotificationPriority.MEDIUM,
            entity_type="approval",
            entity_id=event.approval_id,
            created_by=event.requester_id,
        )
    ]

    title, message = render_template(
        NotificationType.APPROVAL_REQUESTED,
        requester_name=requester_name,
        entity_title=event.entity_title,
    )
    payload = ApprovalRequestedPayload(
        approval_id=event.approval_id,
        entity_title=event.entity_title,
        entity_type=event.entity_type,
        entity_id=event.entity_id,
        requested_by=event.requester_id,
        requester_name=event.requester_name,
        role="approver",
        due_at=due_at,
    )
    priority = approval_priority(event.due_at, now)
    requests.extend(
        NotificationRequest(
            user_id=user_id,
            type=NotificationType.APPROVAL_REQUESTED,
            title=title,
            message=message,
            payload=payload,
            priority=priority,
            entity_type="approval",
            entity_id=event.approval_id,
            created_by=event.requester_id,
        )
        for user_id in _unique(event.approver_ids, exclude=[event.requester_id])
    )
    return requests


def on_approval_status_changed(
    event: ApprovalStatusChanged, now: datetime
) -> list[NotificationRequest]:
    if event.old_status == event.new_status:
        return []

    status = event.new_status.replace("_", " ")
    title, message = render_template(
        NotificationType.APPROVAL_STATUS_CHANGED,
        status=status,
        status_label=status.title(),
        entity_title=event.entity_title,
        approver_name=event.actor_name or UNKNOWN_ACTOR,
    )
    return [
        NotificationRequest(
            user_id=event.requester_id,
            type=NotificationType.APPROVAL_STATUS_CHANGED,
            title=title,
            message=message,
            payload=ApprovalStatusChangedPayload(
                approval_id=event.approval_id,
                entity_title=event.entity_title,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
                old_status=event.old_status,
                new_status=event.new_status,
                changed_by=event.actor_id,
                changed_by_name=event.actor_name,
                comments=event.comments,
            ),
            priority=NotificationPriority.HIGH,
            entity_type="approval",
            entity_id=event.approval_id,
            created_by=event.actor_id,
        )
    ]


def on_approval_comment_added(
    event: ApprovalCommentAdded, now: datetime
) -> list[NotificationRequest]:
    title, message = render_template(
        NotificationType.APPROVAL_REQUESTED,
        "comment_notification",
        commenter_name=event.actor_name or UNKNOWN_ACTOR,
        entity_title=event.entity_title,
    )
    payload = ApprovalRequestedPayload(
        approval_id=event.approval_id,
        entity_title=event.entity_title,
        requested_by=event.requester_id,
        role="participant",
        comment_id=event.comment_id,
        comment_preview=_preview(event.content),
    )
    recipients = _unique([event.requester_id, *event.approver_ids], exclude=[event.actor_id])
    return [
        NotificationRequest(
            user_id=user_id,
            type=NotificationType.APPROVAL_REQUESTED,
            title=title,
            message=message,
            payload=payload,
            priority=NotificationPriority.MEDIUM,
            entity_type="approval",
            entity_id=event.approval_id,
            created_by=event.actor_id,
        )
        for user_id in recipients
    ]


def on_approval_response_submitted(
    event: ApprovalResponseSubmitted, now: datetime
) -> list[NotificationRequest]:
    """Tell the requester about the response and keep other approvers informed."""

    approver_name = event.actor_name or UNKNOWN_ACTOR
    requests: list[NotificationRequest] = []

    if event.requester_id != event.actor_id:
        title, message = render_template(
            NotificationType.APPROVAL_STATUS_CHANGED,
            "response_received",
            approver_name=approver_name,
            entity_title=event.entity_title,
        )
        requests.append(
            NotificationRequest(
                user_id=event.requester_id,
                type=NotificationType.APPROVAL_STATUS_CHANGED,
                title=title,
                message=message,
                payload=ApprovalStatusChangedPayload(
                    approval_id=event.approval_id,
                    entity_title=event.entity_title,
                    new_status=event.response_status,
                    changed_by=event.actor_id,
                    changed_by_name=event.actor_name,
                    comments=event.comment,
                ),
                priority=NotificationPriority.HIGH,
                entity_type="approval",
                entity_id=event.approval_id,
                created_by=event.actor_id,
            )
        )

    others = _unique(event.approver_ids, exclude=[event.actor_id, event.requester_id])
    if others:
        title, message = render_template(
            NotificationType.APPROVAL_REQUESTED,
            "response_notification",
            approver_name=approver_name,
            entity_title=event.entity_title,
        )
        payload = ApprovalRequestedPayload(
            approval_id=event.approval_id,
            entity_title=event.entity_title,
            requested_by=event.requester_id,
            role="approver",
            response_status=event.response_status,
            responder_name=event.actor_name,
        )
        requests.extend(
            NotificationRequest(
                user_id=user_id,
                type=NotificationType.APPROVAL_REQUESTED,
                title=title,
                message=message,
                payload=payload,
                priority=NotificationPriority.MEDIUM,
                entity_type="approval",
                entity_id=event.approval_id,
                created_by=event.actor_id,
            )
            for user_id in others
        )
    return requests


def on_project_member_added(event: ProjectMemberAdded, now: datetime) -> list[NotificationRequest]:
    title, message = render_template(
        NotificationType.PROJECT_ADDED,
        admin_name=event.actor_name or UNKNOWN_ACTOR,
        project_name=event.project_name,
    )
    return [
        NotificationRequest(
            user_id=event.user_id,
            type=NotificationType.PROJECT_ADDED,
            title=title,
            message=message,
            payload=ProjectAddedPayload(
                project_id=event.project_id,
                project_name=event.project_name,
                role=event.role,
                added_by=event.actor_id,
                added_by_name=event.actor_name,
            ),
            priority=NotificationPriority.HIGH,
            entity_type="project",
            entity_id=event.project_id,
            created_by=event.actor_id,
        )
    ]


def on_organization_member_added(
    event: OrganizationMemberAdded, now: datetime
) -> list[NotificationRequest]:
    title, message = render_template(
        NotificationType.ORGANIZATION_ADDED,
        admin_name=event.actor_name or UNKNOWN_ACTOR,
        organization_name=event.organization_name,
    )
    return [
        NotificationRequest(
            user_id=event.user_id,
            type=NotificationType.ORGANIZATION_ADDED,
            title=title,
            message=message,
            payload=OrganizationAddedPayload(
                organization_id=event.organization_id,
                organization_name=event.organization_name,
                role=event.role,
                added_by=event.actor_id,
                added_by_name=event.actor_name,
            ),
            priority=NotificationPriority.HIGH,
            entity_type="organization",
            entity_id=event.organization_id,
            created_by=event.actor_id,
        )
    ]


def on_system_announcement(event: SystemAnnouncement, now: datetime) -> list[NotificationRequest]:
    title, message = render_template(
        NotificationType.SYSTEM, title=event.title, message=event.message
    )
    return [
        NotificationRequest(
            user_id=user_id,
            type=NotificationType.SYSTEM,
            title=title,
            message=message,
            payload=SystemPayload(action_url=event.action_url),
            priority=event.priority,
        )
        for user_id in _unique(event.user_ids)
    ]


DEFAULT_RULES: dict[type[DomainEvent], Rule] = {
    EntityAssigned: on_entity_assigned,
    EntityUnassigned: on_entity_unassigned,
    TaskStatusChanged: on_task_status_changed,
    TaskCommentAdded: on_task_comment_added,
    ApprovalRequested: on_approval_requested,
    ApprovalStatusChanged: on_approval_status_changed,
    ApprovalCommentAdded: on_approval_comment_added,
    ApprovalResponseSubmitted: on_approval_response_submitted,
    ProjectMemberAdded: on_project_member_added,
    OrganizationMemberAdded: on_organization_member_added,
    SystemAnnouncement: on_system_announcement,
}


__all__ = [
    "APPROVAL_URGENT_WINDOW",
    "DEFAULT_RULES",
    "MENTION_PATTERN",
    "Rule",
    "approval_priority",
    "extract_mentions",
    "normalize_entity_type",
    "on_approval_comment_added",
    "on_approval_requested",
    "on_approval_response_submitted",
    "on_approval_status_changed",
    "on_entity_assigned",
    "on_entity_unassigned",
    "on_organization_member_added",
    "on_project_member_added",
    "on_system_announcement",
    "on_task_comment_added",
    "on_task_status_changed",
    "task_priority_to_notification",
]
