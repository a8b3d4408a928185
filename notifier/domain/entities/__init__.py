"""Domain entities exposed by the notification service."""

from .delivery_task import (
    CLAIMABLE_STATUSES,
    OPEN_STATUSES,
    DeliveryStatus,
    DeliveryTask,
    EmailTask,
    PushTask,
)
from .device import DevicePlatform, DeviceRegistration
from .events import (
    ApprovalCommentAdded,
    ApprovalRequested,
    ApprovalResponseSubmitted,
    ApprovalStatusChanged,
    DomainEvent,
    EntityAssigned,
    EntityUnassigned,
    OrganizationMemberAdded,
    ProjectMemberAdded,
    SystemAnnouncement,
    TaskCommentAdded,
    TaskStatusChanged,
)
from .notification import (
    MESSAGE_MAX_LENGTH,
    SELF_NOTIFICATION_ALLOWLIST,
    TITLE_MAX_LENGTH,
    Channel,
    Notification,
    NotificationPriority,
    NotificationType,
)
from .payloads import (
    ApprovalRequestedPayload,
    ApprovalStatusChangedPayload,
    CommentMentionPayload,
    EntityAssignedPayload,
    FormAssignedPayload,
    FormUnassignedPayload,
    NotificationPayload,
    OrganizationAddedPayload,
    PAYLOAD_TYPES,
    ProjectAddedPayload,
    SystemPayload,
    TaskAssignedPayload,
    TaskCommentPayload,
    TaskUnassignedPayload,
    TaskUpdatedPayload,
    payload_from_dict,
    payload_matches,
    payload_to_dict,
)
from .preference import NotificationPreference, NotificationSettings
from .user import Recipient

__all__ = [
    "ApprovalCommentAdded",
    "ApprovalRequested",
    "ApprovalRequestedPayload",
    "ApprovalResponseSubmitted",
    "ApprovalStatusChanged",
    "ApprovalStatusChangedPayload",
    "CLAIMABLE_STATUSES",
    "Channel",
    "CommentMentionPayload",
    "DeliveryStatus",
    "DeliveryTask",
    "DevicePlatform",
    "DeviceRegistration",
    "DomainEvent",
    "EmailTask",
    "EntityAssigned",
    "EntityAssignedPayload",
    "EntityUnassigned",
    "FormAssignedPayload",
    "FormUnassignedPayload",
    "MESSAGE_MAX_LENGTH",
    "Notification",
    "NotificationPayload",
    "NotificationPreference",
    "NotificationPriority",
    "NotificationSettings",
    "NotificationType",
    "OPEN_STATUSES",
    "OrganizationAddedPayload",
    "OrganizationMemberAdded",
    "PAYLOAD_TYPES",
    "ProjectAddedPayload",
    "ProjectMemberAdded",
    "PushTask",
    "Recipient",
    "SELF_NOTIFICATION_ALLOWLIST",
    "SystemAnnouncement",
    "SystemPayload",
    "TITLE_MAX_LENGTH",
    "TaskAssignedPayload",
    "TaskCommentAdded",
    "TaskCommentPayload",
    "TaskStatusChanged",
    "TaskUnassignedPayload",
    "TaskUpdatedPayload",
    "payload_from_dict",
    "payload_matches",
    "payload_to_dict",
]
