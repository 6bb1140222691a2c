"""Sends payment confirmations over email and SMS.

Each channel is attempted inside its own failure boundary, so an email
failure never prevents the SMS attempt and vice versa.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from paynotify.models import ContactInfo, NotificationResult
from paynotify.notification.channels import (
    DisabledChannel,
    DispatchError,
    NotificationChannel,
)

logger = logging.getLogger(__name__)

PAYMENT_SUBJECT = "Payment Received"

_CURRENCY_SYMBOLS = {"usd": "$", "eur": "€", "gbp": "£"}


def format_amount(amount_minor_units: int, currency: str = "usd") -> str:
    """Render a minor-unit amount in major units, e.g. 5000 -> ``$50.00``."""
    major = Decimal(amount_minor_units) / 100
    symbol = _CURRENCY_SYMBOLS.get(currency.lower())
    if symbol:
        return f"{symbol}{major:,.2f}"
    return f"{major:,.2f} {currency.upper()}"


def payment_message(contact: ContactInfo) -> str:
    amount = format_amount(contact.amount_minor_units, contact.currency)
    return f"Thank you for your payment of {amount}."


class NotificationDispatcher:
    async def dispatch(
        self,
        contact: ContactInfo,
        email_channel: NotificationChannel | None = None,
        sms_channel: NotificationChannel | None = None,
    ) -> NotificationResult:
        email_channel = email_channel or DisabledChannel("email")
        sms_channel = sms_channel or DisabledChannel("sms")
        body = payment_message(contact)
        errors: list[str] = []

        email_status = await self._attempt(
            email_channel, contact.email, PAYMENT_SUBJECT, body, errors,
        )
        sms_status = await self._attempt(
            sms_channel, contact.phone, PAYMENT_SUBJECT, body, errors,
        )

        return NotificationResult(
            success=not errors,
            error_message="; ".join(errors) if errors else None,
            email_status=email_status,
            sms_status=sms_status,
        )

    @staticmethod
    async def _attempt(
        channel: NotificationChannel,
        to: str | None,
        subject: str,
        body: str,
        errors: list[str],
    ) -> str | None:
        if not channel.enabled or not to:
            return None
        try:
            status = await channel.send(to, subject, body)
        except DispatchError as exc:
            logger.error("%s notification failed: %s", channel.name, exc.detail)
            errors.append(str(exc))
            return None
        except Exception as exc:  # record and continue with the next channel
            logger.exception("%s notification raised", channel.name)
            errors.append(f"{channel.name}: {exc}")
            return None
        logger.info("%s notification sent, status: %s", channel.name, status)
        return status
