"""Notification text templates and stored payload decoding."""

from __future__ import annotations

import pytest

from notifier.application.use_cases.notifications import render_template
from notifier.domain.entities import (
    NotificationType,
    TaskCommentPayload,
    payload_from_dict,
    payload_to_dict,
)
from notifier.domain.errors import NotificationValidationError


def test_named_template_and_fallback():
    assert render_template(
        NotificationType.APPROVAL_REQUESTED, "requester_confirmation", entity_title="CO 4"
    )[0] == "Approval Request Submitted"
    assert render_template(
        NotificationType.TASK_UNASSIGNED, "missing", task_title="Slab"
    ) == ("Task Unassigned", "You were removed from task: Slab")


def test_missing_placeholder_is_an_error():
    with pytest.raises(NotificationValidationError):
        render_template(NotificationType.TASK_ASSIGNED, task_title="Slab")


def test_long_values_are_truncated():
    title, message = render_template(NotificationType.SYSTEM, title="t" * 300, message="m" * 1200)

    assert len(title) == 255 and title.endswith("...")
    assert len(message) == 1000


def test_payload_decoding_tolerates_old_rows():
    payload = payload_from_dict(
        NotificationType.TASK_COMMENT, {"task_id": "t-1", "legacy_field": 1}
    )

    assert payload == TaskCommentPayload(task_id="t-1", task_title="", comment_id="")
    assert payload_to_dict(payload) == {"task_id": "t-1", "task_title": "", "comment_id": "", "comment_preview": ""}
