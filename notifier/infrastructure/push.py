"""Push transport for Web Push subscriptions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from pywebpush import WebPushException, webpush

from notifier.config import Settings
from notifier.domain.errors import (
    EndpointGoneError,
    PermanentTransportError,
    TransientTransportError,
    TransportNotConfiguredError,
)

logger = logging.getLogger(__name__)

PUSH_TTL_SECONDS = 86400


@dataclass(frozen=True)
class PushMessage:
    platform: str
    token: str
    payload: dict[str, Any] = field(default_factory=dict)
    urgency: str = "normal"


class WebPushTransport:
    """Deliver push payloads to browser subscriptions signed with VAPID."""

    def __init__(
        self,
        vapid_private_key: str | None,
        vapid_claims_email: str,
        *,
        timeout: float | None = None,
        sender: Callable[..., Any] = webpush,
    ) -> None:
        self._vapid_private_key = vapid_private_key
        self._vapid_claims_email = vapid_claims_email
        self._timeout = timeout
        self._sender = sender

    @classmethod
    def from_settings(cls, settings: Settings) -> "WebPushTransport":
        return cls(
            settings.vapid_private_key,
            settings.vapid_claims_email,
            timeout=settings.transport_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self._vapid_private_key)

    def send(self, message: PushMessage) -> None:
        if not self.configured:
            raise TransportNotConfiguredError("VAPID private key is not configured")
        if message.platform != "web":
            raise PermanentTransportError(f"Unsupported push platform '{message.platform}'")

        try:
            subscription = json.loads(message.token)
        except json.JSONDecodeError as exc:
            raise PermanentTransportError("Invalid device token format") from exc
        if not isinstance(subscription, dict) or "endpoint" not in subscription:
            raise PermanentTransportError("Invalid device token format")

        try:
            self._sender(
                subscription_info=subscription,
                data=json.dumps(message.payload),
                vapid_private_key=self._vapid_private_key,
                # pywebpush adds ``aud``/``exp`` to the claims it receives.
                vapid_claims={"sub": self._vapid_claims_email},
                ttl=PUSH_TTL_SECONDS,
                headers={"Urgency": message.urgency},
                timeout=self._timeout,
            )
        except WebPushException as exc:
            response = getattr(exc, "response", None)
            status_code = getattr(response, "status_code", None)
            if status_code in (404, 410):
                raise EndpointGoneError(
                    "Push subscription is no longer valid", status_code=status_code
                ) from exc
            if status_code is None or status_code >= 500 or status_code == 429:
                raise TransientTransportError(str(exc), status_code=status_code) from exc
            raise PermanentTransportError(str(exc), status_code=status_code) from exc
        except OSError as exc:
            logger.warning("Web Push request failed: %s", exc)
            raise TransientTransportError(str(exc)) from exc


__all__ = ["PUSH_TTL_SECONDS", "PushMessage", "WebPushTransport"]
