"""Title and message templates for every notification type."""

from __future__ import annotations

from typing import Any

from notifier.domain.entities import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    NotificationType,
)
from notifier.domain.errors import NotificationValidationError

DEFAULT_TEMPLATE = "default"

# (type, template name) -> (title template, message template)
NOTIFICATION_TEMPLATES: dict[tuple[NotificationType, str], tuple[str, str]] = {
    (NotificationType.SYSTEM, DEFAULT_TEMPLATE): ("{title}", "{message}"),
    (NotificationType.ORGANIZATION_ADDED, DEFAULT_TEMPLATE): (
        "Added to Organization",
        "{admin_name} added you to {organization_name}",
    ),
    (NotificationType.PROJECT_ADDED, DEFAULT_TEMPLATE): (
        "Added to Project",
        "{admin_name} added you to project: {project_name}",
    ),
    (NotificationType.TASK_ASSIGNED, DEFAULT_TEMPLATE): (
        "New Task Assignment",
        "{assigner_name} assigned you to: {task_title}",
    ),
    (NotificationType.TASK_UNASSIGNED, DEFAULT_TEMPLATE): (
        "Task Unassigned",
        "You were removed from task: {task_title}",
    ),
    (NotificationType.TASK_UPDATED, DEFAULT_TEMPLATE): (
        "Task Status Updated",
        'Task "{task_title}" status was updated by {updater_name}',
    ),
    (NotificationType.TASK_UPDATED, "metadata_change"): (
        "Task Metadata Updated",
        '{updater_name} updated metadata for "{task_title}"',
    ),
    (NotificationType.TASK_COMMENT, DEFAULT_TEMPLATE): (
        "New Comment on Your Task",
        '{commenter_name} commented on "{task_title}"',
    ),
    (NotificationType.COMMENT_MENTION, DEFAULT_TEMPLATE): (
        "You were mentioned",
        '{commenter_name} mentioned you in "{task_title}"',
    ),
    (NotificationType.FORM_ASSIGNED, DEFAULT_TEMPLATE): (
        "New Form Assignment",
        "{assigner_name} assigned you to form: {form_name}",
    ),
    (NotificationType.FORM_UNASSIGNED, DEFAULT_TEMPLATE): (
        "Form Unassigned",
        "You were removed from form: {form_name}",
    ),
    (NotificationType.APPROVAL_REQUESTED, DEFAULT_TEMPLATE): (
        "Approval Required",
        "{requester_name} requested approval for: {entity_title}",
    ),
    (NotificationType.APPROVAL_REQUESTED, "requester_confirmation"): (
        "Approval Request Submitted",
        'Your approval request for "{entity_title}" has been submitted and is pending review',
    ),
    (NotificationType.APPROVAL_REQUESTED, "comment_notification"): (
        '{commenter_name} commented on your approval request for "{entity_title}"',
        "{commenter_name} added a comment to your approval request",
    ),
    (NotificationType.APPROVAL_REQUESTED, "response_notification"): (
        '{approver_name} responded to your approval request for "{entity_title}"',
        "{approver_name} has responded to your approval request",
    ),
    (NotificationType.APPROVAL_STATUS_CHANGED, DEFAULT_TEMPLATE): (
        "Approval {status_label}",
        'Your approval request "{entity_title}" has been {status} by {approver_name}',
    ),
    (NotificationType.APPROVAL_STATUS_CHANGED, "response_received"): (
        "Approval Response Received",
        '{approver_name} responded to your approval request for "{entity_title}"',
    ),
    (NotificationType.ENTITY_ASSIGNED, DEFAULT_TEMPLATE): (
        "New Assignment",
        "{assigner_name} assigned you to: {entity_title}",
    ),
}


def _truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[: limit - 3].rstrip() + "..."


def render_template(
    notification_type: NotificationType,
    name: str = DEFAULT_TEMPLATE,
    **values: Any,
) -> tuple[str, str]:
    """Return the ``(title, message)`` pair for ``notification_type``.

    Unknown template names fall back to the type's default template.
    """

    template = NOTIFICATION_TEMPLATES.get((notification_type, name))
    if template is None:
        template = NOTIFICATION_TEMPLATES.get((notification_type, DEFAULT_TEMPLATE))
    if template is None:
        raise NotificationValidationError(
            f"No template registered for notification type '{notification_type.value}'"
        )

    title_template, message_template = template
    try:
        title = title_template.format(**values)
        message = message_template.format(**values)
    except KeyError as exc:
        raise NotificationValidationError(
            f"Missing placeholder {exc} for template '{name}' of '{notification_type.value}'"
        ) from exc
    return _truncate(title, TITLE_MAX_LENGTH), _truncate(message, MESSAGE_MAX_LENGTH)


__all__ = ["DEFAULT_TEMPLATE", "NOTIFICATION_TEMPLATES", "render_template"]
