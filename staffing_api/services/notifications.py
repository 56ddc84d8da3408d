"""Transactional email delivery for agency owner notifications.

The dispatcher POSTs a JSON message to an HTTP email API.  Callers treat every
failure here as non-fatal: a notification never changes the outcome of the
admin action that triggered it.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import quote

import httpx

from staffing_api.core.config import settings
from staffing_api.domain.compliance import COMPLIANCE_DISPLAY_NAMES

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when the email API rejects or cannot receive a message."""


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str


class NotificationDispatcher:
    def __init__(
        self,
        api_key: str | None,
        api_url: str,
        sender: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._api_url = api_url
        self._sender = sender
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "NotificationDispatcher":
        return cls(
            api_key=settings.email_api_key,
            api_url=settings.email_api_url,
            sender=settings.email_sender,
            timeout=settings.email_timeout,
        )

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def send(self, message: EmailMessage) -> str:
        """Send *message* and return the provider's message id."""
        if not self.is_configured():
            raise NotificationError("Email API key is not configured")

        payload = {
            "from": self._sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            raise NotificationError(f"Email API unreachable: {exc}") from exc

        if response.status_code not in (200, 201, 202):
            raise NotificationError(
                f"Email API returned {response.status_code}: {response.text[:200]}"
            )
        try:
            message_id = str(response.json().get("id", ""))
        except (ValueError, AttributeError):
            message_id = ""
        logger.info("Sent email '%s' to %s (id=%s)", message.subject, message.to, message_id)
        return message_id


def compliance_rejected_email(
    *,
    to: str,
    recipient_name: str | None,
    agency_name: str,
    agency_slug: str,
    compliance_type: str,
    reason: str,
    site_url: str,
) -> EmailMessage:
    """Plain rejection notice pointing the owner back at their compliance page."""
    display = COMPLIANCE_DISPLAY_NAMES.get(compliance_type, compliance_type)
    dashboard_url = f"{site_url.rstrip('/')}/dashboard/agency/{quote(agency_slug)}/compliance"
    greeting = f"Hi {recipient_name}," if recipient_name else "Hello,"

    text = (
        f"{greeting}\n\n"
        f"The {display} document submitted for {agency_name} was not approved.\n\n"
        f"Reason: {reason}\n\n"
        f"Please upload a new document at {dashboard_url}\n"
    )
    body = (
        f"<p>{html.escape(greeting)}</p>"
        f"<p>The <strong>{html.escape(display)}</strong> document submitted for "
        f"<strong>{html.escape(agency_name)}</strong> was not approved.</p>"
        f"<p><strong>Reason:</strong> {html.escape(reason)}</p>"
        f'<p><a href="{html.escape(dashboard_url)}">Upload a new document</a></p>'
    )
    return EmailMessage(
        to=to,
        subject=f"Compliance Document Update - {agency_name}",
        html=body,
        text=text,
    )


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency — dispatcher built from settings."""
    return NotificationDispatcher.from_settings()
