"""Structured payloads attached to notifications.

Each notification type carries exactly one payload shape. The shapes are
stored as JSON, so every field is a JSON scalar; timestamps travel as ISO
strings.
"""

from __future__ import annotations

from dataclasses import MISSING, asdict, dataclass, fields
from typing import Any, Union

from .notification import NotificationType


@dataclass(frozen=True)
class SystemPayload:
    action_url: str | None = None


@dataclass(frozen=True)
class TaskAssignedPayload:
    task_id: str
    task_title: str
    project_id: str | None = None
    project_name: str | None = None
    assigned_by: int | None = None
    assigner_name: str | None = None
    due_date: str | None = None
    task_priority: str | None = None


@dataclass(frozen=True)
class TaskUnassignedPayload:
    task_id: str
    task_title: str
    project_id: str | None = None
    project_name: str | None = None
    unassigned_by: int | None = None


@dataclass(frozen=True)
class TaskUpdatedPayload:
    task_id: str
    task_title: str
    old_status: str | None = None
    new_status: str | None = None
    updated_by: int | None = None
    updater_name: str | None = None
    project_name: str | None = None


@dataclass(frozen=True)
class TaskCommentPayload:
    task_id: str
    task_title: str
    comment_id: str
    comment_preview: str = ""
    project_name: str | None = None
    commenter_id: int | None = None
    commenter_name: str | None = None


@dataclass(frozen=True)
class CommentMentionPayload:
    task_id: str
    task_title: str
    comment_id: str
    comment_preview: str = ""
    project_name: str | None = None
    commenter_id: int | None = None
    commenter_name: str | None = None


@dataclass(frozen=True)
class FormAssignedPayload:
    form_id: str
    form_title: str
    project_id: str | None = None
    project_name: str | None = None
    assigned_by: int | None = None
    assigner_name: str | None = None


@dataclass(frozen=True)
class FormUnassignedPayload:
    form_id: str
    form_title: str
    project_id: str | None = None
    project_name: str | None = None
    unassigned_by: int | None = None


@dataclass(frozen=True)
class EntityAssignedPayload:
    entity_type: str
    entity_id: str
    entity_title: str
    assigned_by: int | None = None
    assigner_name: str | None = None


@dataclass(frozen=True)
class ApprovalRequestedPayload:
    approval_id: str
    entity_title: str
    entity_type: str | None = None
    entity_id: str | None = None
    requested_by: int | None = None
    requester_name: str | None = None
    role: str = "approver"
    due_at: str | None = None
    comment_id: str | None = None
    comment_preview: str | None = None
    response_status: str | None = None
    responder_name: str | None = None


@dataclass(frozen=True)
class ApprovalStatusChangedPayload:
    approval_id: str
    entity_title: str
    entity_type: str | None = None
    entity_id: str | None = None
    old_status: str | None = None
    new_status: str | None = None
    changed_by: int | None = None
    changed_by_name: str | None = None
    comments: str | None = None


@dataclass(frozen=True)
class OrganizationAddedPayload:
    organization_id: str
    organization_name: str
    role: str | None = None
    added_by: int | None = None
    added_by_name: str | None = None


@dataclass(frozen=True)
class ProjectAddedPayload:
    project_id: str
    project_name: str
    role: str | None = None
    added_by: int | None = None
    added_by_name: str | None = None


NotificationPayload = Union[
    SystemPayload,
    TaskAssignedPayload,
    TaskUnassignedPayload,
    TaskUpdatedPayload,
    TaskCommentPayload,
    CommentMentionPayload,
    FormAssignedPayload,
    FormUnassignedPayload,
    EntityAssignedPayload,
    ApprovalRequestedPayload,
    ApprovalStatusChangedPayload,
    OrganizationAddedPayload,
    ProjectAddedPayload,
]

PAYLOAD_TYPES: dict[NotificationType, type] = {
    NotificationType.SYSTEM: SystemPayload,
    NotificationType.TASK_ASSIGNED: TaskAssignedPayload,
    NotificationType.TASK_UNASSIGNED: TaskUnassignedPayload,
    NotificationType.TASK_UPDATED: TaskUpdatedPayload,
    NotificationType.TASK_COMMENT: TaskCommentPayload,
    NotificationType.COMMENT_MENTION: CommentMentionPayload,
    NotificationType.FORM_ASSIGNED: FormAssignedPayload,
    NotificationType.FORM_UNASSIGNED: FormUnassignedPayload,
    NotificationType.ENTITY_ASSIGNED: EntityAssignedPayload,
    NotificationType.APPROVAL_REQUESTED: ApprovalRequestedPayload,
    NotificationType.APPROVAL_STATUS_CHANGED: ApprovalStatusChangedPayload,
    NotificationType.ORGANIZATION_ADDED: OrganizationAddedPayload,
    NotificationType.PROJECT_ADDED: ProjectAddedPayload,
}


def payload_matches(notification_type: NotificationType, payload: object) -> bool:
    """Return ``True`` when ``payload`` is the shape declared for the type."""

    return type(payload) is PAYLOAD_TYPES[notification_type]


def payload_to_dict(payload: NotificationPayload) -> dict[str, Any]:
    """Return the JSON representation of ``payload`` without empty fields."""

    return {key: value for key, value in asdict(payload).items() if value is not None}


def payload_from_dict(
    notification_type: NotificationType, data: dict[str, Any] | None
) -> NotificationPayload:
    """Rebuild the payload stored for ``notification_type``.

    Unknown keys are dropped and missing required keys are filled with empty
    strings, so rows written by older releases still load.
    """

    payload_cls = PAYLOAD_TYPES[notification_type]
    data = data or {}
    values: dict[str, Any] = {}
    for item in fields(payload_cls):
        if item.name in data:
            values[item.name] = data[item.name]
        elif item.default is MISSING and item.default_factory is MISSING:
            values[item.name] = ""
    return payload_cls(**values)


__all__ = [
    "ApprovalRequestedPayload",
    "ApprovalStatusChangedPayload",
    "CommentMentionPayload",
    "EntityAssignedPayload",
    "FormAssignedPayload",
    "FormUnassignedPayload",
    "NotificationPayload",
    "OrganizationAddedPayload",
    "PAYLOAD_TYPES",
    "ProjectAddedPayload",
    "SystemPayload",
    "TaskAssignedPayload",
    "TaskCommentPayload",
    "TaskUnassignedPayload",
    "TaskUpdatedPayload",
    "payload_from_dict",
    "payload_matches",
    "payload_to_dict",
]
