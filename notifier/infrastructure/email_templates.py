"""Render notification emails.

Each notification type picks a heading, a subject line and a call to action;
the notification's own title and message fill the body.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Any, Callable


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class _EmailLayout:
    heading: str
    subject: Callable[[dict[str, Any], str], str]
    action_path: Callable[[dict[str, Any]], str | None]
    action_text: str = "View Details"
    notice: str | None = None
    notice_class: str = "priority-high"
    closing: str | None = None


def _entity_path(prefix: str, fallback: str | None = None):
    def build(context: dict[str, Any]) -> str | None:
        entity_id = context.get("entity_id")
        return f"{prefix}/{entity_id}" if entity_id else fallback

    return build


def _task_comment_path(context: dict[str, Any]) -> str | None:
    data = context["notification_data"]
    task_id = data.get("task_id")
    if not task_id:
        return "/protected/tasks"
    comment_id = data.get("comment_id")
    return f"/protected/tasks/{task_id}#comment-{comment_id}" if comment_id else f"/protected/tasks/{task_id}"


def _generic_entity_path(context: dict[str, Any]) -> str | None:
    entity_type = context.get("entity_type")
    entity_id = context.get("entity_id")
    if entity_type and entity_id:
        return f"/protected/{entity_type}s/{entity_id}"
    return "/protected"


def _data_subject(prefix: str, key: str, default: str):
    return lambda context, title: f"{prefix}: {context['notification_data'].get(key) or default}"


_LAYOUTS: dict[str, _EmailLayout] = {
    "task_assigned": _EmailLayout(
        heading="New Task Assignment",
        subject=_data_subject("New Task Assigned", "task_title", "Task"),
        action_path=_entity_path("/protected/tasks", "/protected/tasks"),
        action_text="View Task",
        notice="<strong>Action Required:</strong> A new task has been assigned to you and needs your attention.",
    ),
    "task_unassigned": _EmailLayout(
        heading="Task Unassignment",
        subject=_data_subject("Task Unassigned", "task_title", "Task"),
        action_path=_entity_path("/protected/tasks", "/protected/tasks"),
        action_text="View Tasks",
    ),
    "task_updated": _EmailLayout(
        heading="Task Status Update",
        subject=_data_subject("Task Updated", "task_title", "Task"),
        action_path=_entity_path("/protected/tasks", "/protected/tasks"),
        action_text="View Task",
    ),
    "task_comment": _EmailLayout(
        heading="New Comment",
        subject=_data_subject("New Comment", "task_title", "Task"),
        action_path=_task_comment_path,
        action_text="View Comment",
    ),
    "comment_mention": _EmailLayout(
        heading="You Were Mentioned",
        subject=_data_subject("You were mentioned in", "task_title", "Task"),
        action_path=_task_comment_path,
        action_text="View Mention",
        notice="<strong>Your attention is requested</strong> in this conversation.",
    ),
    "form_assigned": _EmailLayout(
        heading="Form Assignment",
        subject=_data_subject("Form Assigned", "form_title", "Form"),
        action_path=_entity_path("/protected/forms", "/protected/forms"),
        action_text="Complete Form",
        notice="<strong>Action Required:</strong> A form has been assigned to you for completion.",
    ),
    "form_unassigned": _EmailLayout(
        heading="Form Unassignment",
        subject=_data_subject("Form Unassigned", "form_title", "Form"),
        action_path=_entity_path("/protected/forms", "/protected/forms"),
        action_text="View Forms",
    ),
    "approval_requested": _EmailLayout(
        heading="Approval Required",
        subject=_data_subject("Approval Required", "entity_title", "Item"),
        action_path=_entity_path("/protected/approvals", "/protected/approvals"),
        action_text="Review & Approve",
        notice="<strong>Action Required:</strong> Your approval is needed to proceed with this request.",
        notice_class="priority-critical",
    ),
    "approval_status_changed": _EmailLayout(
        heading="Approval Status Update",
        subject=_data_subject("Approval Update", "entity_title", "Request"),
        action_path=_entity_path("/protected/approvals", "/protected/approvals"),
        action_text="View Update",
    ),
    "organization_added": _EmailLayout(
        heading="Organization Invitation",
        subject=lambda context, title: (
            f"Welcome to {context['notification_data'].get('organization_name') or 'Organization'}"
        ),
        action_path=_entity_path("/protected/organizations", "/protected"),
        action_text="Explore Organization",
        closing="Welcome to the team! You now have access to collaborate on projects and tasks.",
    ),
    "project_added": _EmailLayout(
        heading="Project Invitation",
        subject=_data_subject("Added to Project", "project_name", "Project"),
        action_path=_entity_path("/protected/projects", "/protected"),
        action_text="View Project",
        closing="You're now part of this project and can start collaborating with the team.",
    ),
    "entity_assigned": _EmailLayout(
        heading="New Assignment",
        subject=_data_subject("New Assignment", "entity_title", "Item"),
        action_path=_generic_entity_path,
        action_text="View Assignment",
    ),
    "system": _EmailLayout(
        heading="System Notification",
        subject=lambda context, title: f"System Notice: {title}",
        action_path=lambda context: context["notification_data"].get("action_url"),
    ),
}

_DEFAULT_LAYOUT = _EmailLayout(
    heading="Notification",
    subject=lambda context, title: title,
    action_path=_generic_entity_path,
)


def _absolute_url(base_url: str, path: str | None) -> str | None:
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def render_email(
    template_id: str,
    template_data: dict[str, Any],
    *,
    fallback_subject: str,
    user_name: str,
    base_url: str,
) -> RenderedEmail:
    """Build the subject, HTML and plain-text bodies for one email task."""

    context = dict(template_data)
    context["notification_data"] = dict(template_data.get("notification_data") or {})
    title = context.get("notification_title") or fallback_subject
    message = context.get("notification_message") or ""
    layout = _LAYOUTS.get(context.get("notification_type") or template_id, _DEFAULT_LAYOUT)

    action_url = _absolute_url(base_url, layout.action_path(context))
    settings_url = _absolute_url(base_url, "/protected/settings/notifications")

    sections = [
        f"<h2>{escape(layout.heading)}</h2>",
        f"<p><strong>{escape(title)}</strong></p>",
        f"<p>{escape(message)}</p>",
    ]
    if layout.notice:
        sections.append(f'<div class="{layout.notice_class}"><p>{layout.notice}</p></div>')
    if layout.closing:
        sections.append(f"<p>{escape(layout.closing)}</p>")
    if action_url:
        sections.append(
            f'<p><a href="{escape(action_url)}" class="button">{escape(layout.action_text)}</a></p>'
        )

    html = (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{escape(title)}</title></head><body>"
        '<div class="container"><div class="header"><h1>Conpanion</h1></div>'
        f'<div class="content"><p>Hi {escape(user_name)},</p>{"".join(sections)}</div>'
        '<div class="footer"><p>You\'re receiving this notification based on your preferences.</p>'
        f'<p><a href="{escape(settings_url)}">Manage Notifications</a> | '
        f'<a href="{escape(base_url)}">Visit Conpanion</a></p></div>'
        "</div></body></html>"
    )

    text_lines = [f"Hi {user_name},", "", message, ""]
    if action_url:
        text_lines.extend([f"View details: {action_url}", ""])
    text_lines.append(f"Manage notifications: {settings_url}")
    text_lines.append(f"Visit Conpanion: {base_url}")

    return RenderedEmail(
        subject=layout.subject(context, title),
        html=html,
        text="\n".join(text_lines),
    )


__all__ = ["RenderedEmail", "render_email"]
