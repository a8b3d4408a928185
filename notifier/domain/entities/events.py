"""Domain events reported by business code after a mutation.

Each event carries the facts the notification rules need, so rule
functions never read the business tables themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .notification import NotificationPriority


class DomainEvent:
    """Marker base class for events accepted by the dispatcher."""


@dataclass(frozen=True)
class EntityAssigned(DomainEvent):
    """A user was assigned to a task, a form or another entity."""

    entity_type: str
    entity_id: str
    entity_title: str
    assignee_id: int
    actor_id: int | None = None
    actor_name: str | None = None
    project_id: str | None = None
    project_name: str | None = None
    task_priority: str | None = None
    due_date: datetime | None = None


@dataclass(frozen=True)
class EntityUnassigned(DomainEvent):
    entity_type: str
    entity_id: str
    entity_title: str
    assignee_id: int
    actor_id: int | None = None
    project_id: str | None = None
    project_name: str | None = None


@dataclass(frozen=True)
class TaskStatusChanged(DomainEvent):
    task_id: str
    task_title: str
    old_status: str | None
    new_status: str | None
    assignee_ids: tuple[int, ...] = ()
    actor_id: int | None = None
    actor_name: str | None = None
    project_name: str | None = None
    task_priority: str | None = None


@dataclass(frozen=True)
class TaskCommentAdded(DomainEvent):
    """A comment was posted on a task.

    Mentions are written inside ``content`` as ``@[<user id>]``.
    """

    task_id: str
    task_title: str
    comment_id: str
    content: str
    assignee_ids: tuple[int, ...] = ()
    actor_id: int | None = None
    actor_name: str | None = None
    project_name: str | None = None


@dataclass(frozen=True)
class ApprovalRequested(DomainEvent):
    approval_id: str
    entity_title: str
    requester_id: int
    approver_ids: tuple[int, ...] = ()
    requester_name: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    due_at: datetime | None = None


@dataclass(frozen=True)
class ApprovalStatusChanged(DomainEvent):
    approval_id: str
    entity_title: str
    requester_id: int
    old_status: str | None
    new_status: str
    actor_id: int | None = None
    actor_name: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    comments: str | None = None


@dataclass(frozen=True)
class ApprovalCommentAdded(DomainEvent):
    approval_id: str
    entity_title: str
    comment_id: str
    content: str
    requester_id: int
    approver_ids: tuple[int, ...] = ()
    actor_id: int | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class ApprovalResponseSubmitted(DomainEvent):
    """An approver answered an approval request."""

    approval_id: str
    entity_title: str
    response_status: str
    requester_id: int
    approver_ids: tuple[int, ...] = ()
    actor_id: int | None = None
    actor_name: str | None = None
    comment: str | None = None


@dataclass(frozen=True)
class ProjectMemberAdded(DomainEvent):
    project_id: str
    project_name: str
    user_id: int
    role: str | None = None
    actor_id: int | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class OrganizationMemberAdded(DomainEvent):
    organization_id: str
    organization_name: str
    user_id: int
    role: str | None = None
    actor_id: int | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class SystemAnnouncement(DomainEvent):
    """Operator message sent to a list of users."""

    user_ids: tuple[int, ...]
    title: str
    message: str
    action_url: str | None = None
    priority: NotificationPriority = NotificationPriority.MEDIUM


__all__ = [
    "ApprovalCommentAdded",
    "ApprovalRequested",
    "ApprovalResponseSubmitted",
    "ApprovalStatusChanged",
    "DomainEvent",
    "EntityAssigned",
    "EntityUnassigned",
    "OrganizationMemberAdded",
    "ProjectMemberAdded",
    "SystemAnnouncement",
    "TaskCommentAdded",
    "TaskStatusChanged",
]
