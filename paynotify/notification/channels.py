"""Notification channels: SendGrid email and Twilio SMS over httpx.

Every channel exposes the same capability, ``send(to, subject, body)``,
returning a provider status (email) or message SID (SMS). A channel without
credentials is a ``DisabledChannel`` that never sends anything.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

if TYPE_CHECKING:
    from paynotify.config import Settings

logger = logging.getLogger(__name__)

_SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
_TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
_TIMEOUT_SECONDS = 30.0


class DispatchError(Exception):
    """Raised when a provider rejects or fails a send."""

    def __init__(self, channel: str, detail: str) -> None:
        self.channel = channel
        self.detail = detail
        super().__init__(f"{channel} send failed: {detail}")


@runtime_checkable
class NotificationChannel(Protocol):
    name: str
    enabled: bool

    async def send(self, to: str, subject: str, body: str) -> str | None: ...


class DisabledChannel:
    """Channel with no credentials configured."""

    enabled = False

    def __init__(self, name: str) -> None:
        self.name = name

    async def send(self, to: str, subject: str, body: str) -> str | None:
        return None


class SendGridEmailChannel:
    """Sends plain-text email through the SendGrid v3 API."""

    name = "email"
    enabled = True

    def __init__(
        self,
        api_key: str,
        from_email: str = "no-reply@example.com",
        from_name: str = "Stripe Demo",
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._from_name = from_name

    async def send(self, to: str, subject: str, body: str) -> str | None:
        """Return the HTTP status code as a string, e.g. ``"202"``."""
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self._from_email, "name": self._from_name},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    _SENDGRID_URL, json=payload, headers=headers, timeout=_TIMEOUT_SECONDS,
                )
        except httpx.HTTPError as exc:
            raise DispatchError(self.name, str(exc)) from exc

        if resp.status_code >= 400:
            raise DispatchError(self.name, f"SendGrid returned {resp.status_code}")
        return str(resp.status_code)


class TwilioSmsChannel:
    """Sends SMS through the Twilio Messages API. Subject is not used."""

    name = "sms"
    enabled = True

    def __init__(self, account_sid: str, auth_token: str, from_number: str) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number

    async def send(self, to: str, subject: str, body: str) -> str | None:
        """Return the Twilio message SID."""
        url = f"{_TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"
        form = {"To": to, "From": self._from_number, "Body": body}

        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    url,
                    data=form,
                    auth=(self._account_sid, self._auth_token),
                    timeout=_TIMEOUT_SECONDS,
                )
        except httpx.HTTPError as exc:
            raise DispatchError(self.name, str(exc)) from exc

        if resp.status_code >= 400:
            raise DispatchError(self.name, f"Twilio returned {resp.status_code}")
        try:
            return resp.json().get("sid")
        except ValueError as exc:
            raise DispatchError(self.name, "Twilio response was not JSON") from exc


def build_channels(settings: Settings) -> tuple[NotificationChannel, NotificationChannel]:
    """Return (email, sms) channels; missing credentials give a DisabledChannel."""
    email: NotificationChannel = DisabledChannel("email")
    sms: NotificationChannel = DisabledChannel("sms")

    if settings.email_enabled:
        email = SendGridEmailChannel(
            api_key=settings.sendgrid_api_key or "",
            from_email=settings.sendgrid_from_email,
            from_name=settings.sendgrid_from_name,
        )
    else:
        logger.info("SendGrid API key not configured; email notifications disabled")

    if settings.sms_enabled:
        sms = TwilioSmsChannel(
            account_sid=settings.twilio_account_sid or "",
            auth_token=settings.twilio_auth_token or "",
            from_number=settings.twilio_from_number or "",
        )
    else:
        logger.info("Twilio credentials not configured; SMS notifications disabled")

    return email, sms
