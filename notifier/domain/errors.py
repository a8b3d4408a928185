"""Exceptions raised by the notification pipeline."""

from __future__ import annotations


class NotificationValidationError(ValueError):
    """Raised when a notification request cannot be stored as given."""


class TransportError(Exception):
    """Base class for failures reported by an outbound transport."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientTransportError(TransportError):
    """The delivery may succeed if attempted again later."""


class PermanentTransportError(TransportError):
    """Retrying the delivery will not help."""


class EndpointGoneError(PermanentTransportError):
    """The push endpoint no longer exists and the device must be disabled."""


class TransportNotConfiguredError(TransportError):
    """The transport is missing credentials and cannot send anything."""


__all__ = [
    "EndpointGoneError",
    "NotificationValidationError",
    "PermanentTransportError",
    "TransientTransportError",
    "TransportError",
    "TransportNotConfiguredError",
]
