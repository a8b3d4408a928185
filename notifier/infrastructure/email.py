"""Email transport backed by SendGrid."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from notifier.config import Settings
from notifier.domain.errors import (
    PermanentTransportError,
    TransientTransportError,
    TransportError,
    TransportNotConfiguredError,
)

logger = logging.getLogger(__name__)

# Statuses that describe a malformed request; sending it again cannot succeed.
_PERMANENT_STATUS_CODES = frozenset({400, 413})
# Client errors that depend on credentials or rate limits and may clear up.
_TRANSIENT_CLIENT_STATUS_CODES = frozenset({401, 403, 408, 429})


@dataclass(frozen=True)
class EmailMessage:
    to_email: str
    subject: str
    html: str
    text: str
    to_name: str | None = None


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages = [
                str(item["message"])
                for item in errors
                if isinstance(item, dict) and item.get("message")
            ]
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def classify_status(status_code: int | None, detail: str) -> TransportError:
    """Map a SendGrid status code onto the transport error hierarchy."""

    if status_code is None:
        return TransientTransportError(detail)
    if status_code in _PERMANENT_STATUS_CODES:
        return PermanentTransportError(detail, status_code=status_code)
    if status_code >= 500 or status_code in _TRANSIENT_CLIENT_STATUS_CODES:
        return TransientTransportError(detail, status_code=status_code)
    return PermanentTransportError(detail, status_code=status_code)


def _describe_failure(status_code: int | None, details: str | None, fallback: str) -> str:
    if status_code and details:
        return f"SendGrid API request failed with status {status_code}: {details}"
    if status_code:
        return f"SendGrid API request failed with status {status_code}"
    if details:
        return f"SendGrid API request failed: {details}"
    return f"Error sending email via SendGrid: {fallback}"


def _message_id(response: Any) -> str | None:
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    return headers.get("X-Message-Id") or headers.get("x-message-id")


class SendGridEmailTransport:
    """Send rendered emails through the SendGrid v3 API.

    ``send`` returns the provider message id and raises
    :class:`TransportError` subclasses on failure.
    """

    def __init__(
        self,
        api_key: str | None,
        sender: str | None,
        *,
        sender_name: str | None = None,
        timeout: float | None = None,
        client_factory: Callable[[str], Any] = SendGridAPIClient,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._sender_name = sender_name
        self._timeout = timeout
        self._client_factory = client_factory

    @classmethod
    def from_settings(cls, settings: Settings) -> "SendGridEmailTransport":
        return cls(
            settings.sendgrid_api_key,
            settings.sendgrid_sender,
            sender_name=settings.sendgrid_sender_name,
            timeout=settings.transport_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._sender)

    def send(self, message: EmailMessage) -> str | None:
        if not self.configured:
            raise TransportNotConfiguredError("SendGrid configuration incomplete")

        sender = (self._sender, self._sender_name) if self._sender_name else self._sender
        recipient = (message.to_email, message.to_name) if message.to_name else message.to_email
        mail = Mail(
            from_email=sender,
            to_emails=recipient,
            subject=message.subject,
            html_content=message.html,
            plain_text_content=message.text,
        )

        try:
            client = self._client_factory(self._api_key)
            if self._timeout is not None:
                # python_http_client owns the socket timeout.
                client.client.timeout = self._timeout
            response = client.send(mail)
        except Exception as exc:
            status_code = getattr(exc, "status_code", None)
            details = _extract_sendgrid_error_details(getattr(exc, "body", None))
            description = _describe_failure(status_code, details, str(exc))
            logger.error(description)
            raise classify_status(status_code, description) from exc

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            details = _extract_sendgrid_error_details(getattr(response, "body", None))
            description = _describe_failure(status_code, details, "unexpected response")
            logger.error(description)
            raise classify_status(
                status_code if isinstance(status_code, int) else None, description
            )

        return _message_id(response)


__all__ = ["EmailMessage", "SendGridEmailTransport", "classify_status"]
