"""Decide which channels may carry a notification to a user."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from notifier.domain.entities import (
    Channel,
    NotificationPreference,
    NotificationPriority,
    NotificationSettings,
    NotificationType,
)
from notifier.utils import local_time_of_day

# Quiet hours only hold back interruptions; the inbox always fills up.
QUIET_HOURS_CHANNELS = frozenset({Channel.EMAIL, Channel.PUSH})


@dataclass(frozen=True)
class ChannelDecision:
    """Outcome of the preference filter for one recipient.

    ``record`` reflects the user's switches only; quiet hours can hold back
    an email or push delivery but never the stored notification.
    """

    record: bool
    in_app: bool
    email: bool
    push: bool

    def allows(self, channel: Channel) -> bool:
        return {
            Channel.IN_APP: self.in_app,
            Channel.EMAIL: self.email,
            Channel.PUSH: self.push,
        }[channel]


def in_quiet_hours(settings: NotificationSettings | None, now: datetime) -> bool:
    """Return ``True`` when ``now`` falls inside the user's quiet hours."""

    if settings is None or not settings.has_quiet_hours:
        return False

    current = local_time_of_day(now, settings.timezone)
    return time_in_window(current, settings.quiet_hours_start, settings.quiet_hours_end)


def time_in_window(current: time, start: time, end: time) -> bool:
    """Half-open ``[start, end)`` check that wraps past midnight."""

    if start > end:
        return current >= start or current < end
    return start <= current < end


def _flag_allows(
    channel: Channel,
    settings: NotificationSettings | None,
    preference: NotificationPreference | None,
) -> bool:
    if settings is not None and not settings.notifications_enabled:
        return False
    if preference is None:
        return True
    return {
        Channel.IN_APP: preference.in_app_enabled,
        Channel.EMAIL: preference.email_enabled,
        Channel.PUSH: preference.push_enabled,
    }[channel]


def is_channel_allowed(
    notification_type: NotificationType,
    channel: Channel,
    settings: NotificationSettings | None,
    preference: NotificationPreference | None,
    now: datetime,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
) -> bool:
    """Apply the preference rules for one channel.

    System notifications always pass. Otherwise the global switch, the
    per-type switch and, for email and push, the quiet hours window apply
    in that order. Critical notifications ignore quiet hours.
    """

    if notification_type is NotificationType.SYSTEM:
        return True
    if not _flag_allows(channel, settings, preference):
        return False
    if (
        channel in QUIET_HOURS_CHANNELS
        and priority is not NotificationPriority.CRITICAL
        and in_quiet_hours(settings, now)
    ):
        return False
    return True


def evaluate_channels(
    notification_type: NotificationType,
    settings: NotificationSettings | None,
    preference: NotificationPreference | None,
    now: datetime,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
) -> ChannelDecision:
    if notification_type is NotificationType.SYSTEM:
        return ChannelDecision(record=True, in_app=True, email=True, push=True)

    record = any(_flag_allows(channel, settings, preference) for channel in Channel)
    return ChannelDecision(
        record=record,
        in_app=is_channel_allowed(
            notification_type, Channel.IN_APP, settings, preference, now, priority
        ),
        email=is_channel_allowed(
            notification_type, Channel.EMAIL, settings, preference, now, priority
        ),
        push=is_channel_allowed(
            notification_type, Channel.PUSH, settings, preference, now, priority
        ),
    )


__all__ = [
    "ChannelDecision",
    "QUIET_HOURS_CHANNELS",
    "evaluate_channels",
    "in_quiet_hours",
    "is_channel_allowed",
    "time_in_window",
]
