"""Channel filtering by preferences, global switch and quiet hours."""

from __future__ import annotations

from datetime import datetime, time, timezone

import pytest

from notifier.application.preferences import (
    evaluate_channels,
    in_quiet_hours,
    is_channel_allowed,
    time_in_window,
)
from notifier.domain.entities import (
    Channel,
    NotificationPreference,
    NotificationPriority,
    NotificationSettings,
    NotificationType,
)


def _at(hour: int, minute: int) -> datetime:
    return datetime(2026, 3, 2, hour, minute, tzinfo=timezone.utc)


def _quiet(start=time(22, 0), end=time(7, 0), tz="UTC") -> NotificationSettings:
    return NotificationSettings(
        id=1,
        user_id=5,
        quiet_hours_enabled=True,
        quiet_hours_start=start,
        quiet_hours_end=end,
        timezone=tz,
    )


@pytest.mark.parametrize(
    ("hour", "minute", "expected"),
    [(23, 30, True), (12, 0, False), (6, 59, True), (7, 1, False), (22, 0, True), (7, 0, False)],
)
def test_quiet_hours_window_wraps_midnight(hour, minute, expected):
    assert in_quiet_hours(_quiet(), _at(hour, minute)) is expected


def test_quiet_hours_same_day_window():
    assert time_in_window(time(13, 0), time(12, 0), time(14, 0))
    assert not time_in_window(time(14, 0), time(12, 0), time(14, 0))
    assert not time_in_window(time(11, 59), time(12, 0), time(14, 0))


def test_quiet_hours_use_user_timezone():
    settings = _quiet(tz="America/Bogota")
    # 03:30 UTC is 22:30 in Bogota.
    assert in_quiet_hours(settings, _at(3, 30))
    # 23:30 UTC is 18:30 in Bogota.
    assert not in_quiet_hours(settings, _at(23, 30))


def test_quiet_hours_disabled_never_match():
    settings = _quiet()
    settings.quiet_hours_enabled = False
    assert not in_quiet_hours(settings, _at(23, 30))
    assert not in_quiet_hours(None, _at(23, 30))


def test_missing_settings_and_preferences_allow_everything():
    decision = evaluate_channels(NotificationType.TASK_ASSIGNED, None, None, _at(23, 30))

    assert decision.record
    assert decision.in_app and decision.email and decision.push


def test_quiet_hours_hold_back_email_and_push_only():
    decision = evaluate_channels(
        NotificationType.TASK_COMMENT, _quiet(), None, _at(23, 30), NotificationPriority.MEDIUM
    )

    assert decision.record
    assert decision.allows(Channel.IN_APP)
    assert not decision.allows(Channel.EMAIL)
    assert not decision.allows(Channel.PUSH)


def test_critical_priority_ignores_quiet_hours():
    assert is_channel_allowed(
        NotificationType.APPROVAL_REQUESTED,
        Channel.PUSH,
        _quiet(),
        None,
        _at(23, 30),
        NotificationPriority.CRITICAL,
    )


def test_global_switch_blocks_every_channel():
    settings = NotificationSettings(id=1, user_id=5, notifications_enabled=False)
    decision = evaluate_channels(NotificationType.TASK_ASSIGNED, settings, None, _at(12, 0))

    assert not decision.record
    assert not (decision.in_app or decision.email or decision.push)


def test_system_notifications_bypass_every_switch():
    settings = NotificationSettings(id=1, user_id=5, notifications_enabled=False)
    preference = NotificationPreference(
        id=1,
        user_id=5,
        type=NotificationType.SYSTEM,
        email_enabled=False,
        push_enabled=False,
        in_app_enabled=False,
    )

    for channel in Channel:
        assert is_channel_allowed(
            NotificationType.SYSTEM, channel, settings, preference, _at(23, 30)
        )


def test_per_type_preference_disables_single_channel():
    preference = NotificationPreference(
        id=1, user_id=5, type=NotificationType.TASK_UPDATED, email_enabled=False
    )
    decision = evaluate_channels(NotificationType.TASK_UPDATED, None, preference, _at(12, 0))

    assert decision.in_app and decision.push
    assert not decision.email


def test_record_false_when_every_channel_switched_off():
    preference = NotificationPreference(
        id=1,
        user_id=5,
        type=NotificationType.TASK_UPDATED,
        email_enabled=False,
        push_enabled=False,
        in_app_enabled=False,
    )

    assert not evaluate_channels(
        NotificationType.TASK_UPDATED, None, preference, _at(12, 0)
    ).record
