"""Queue consumer pipeline: decode, extract contact data, notify."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from paynotify.models import (
    AuditEvent,
    AuditEventType,
    Err,
    NotificationResult,
    RiskLevel,
)
from paynotify.notification.channels import DisabledChannel, NotificationChannel
from paynotify.notification.dispatcher import NotificationDispatcher
from paynotify.notification.extractor import ContactExtractor
from paynotify.queue import codec

if TYPE_CHECKING:
    from paynotify.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


class PaymentNotificationService:
    """Processes one queue message into one NotificationResult.

    States: received -> decoded -> extracted -> email/SMS attempted -> result.
    Nothing is retried here; redelivery is the queue transport's job.
    """

    def __init__(
        self,
        email_channel: NotificationChannel | None = None,
        sms_channel: NotificationChannel | None = None,
        extractor: ContactExtractor | None = None,
        dispatcher: NotificationDispatcher | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._email = email_channel or DisabledChannel("email")
        self._sms = sms_channel or DisabledChannel("sms")
        self._extractor = extractor or ContactExtractor()
        self._dispatcher = dispatcher or NotificationDispatcher()
        self._audit = audit_logger

    async def process(self, queue_message: str) -> NotificationResult:
        try:
            result = await self._process(queue_message)
        except Exception as exc:
            logger.exception("Unexpected error processing queue message")
            result = NotificationResult(success=False, error_message=str(exc) or repr(exc))

        self._log_audit(result)
        return result

    async def _process(self, queue_message: str) -> NotificationResult:
        decoded = codec.decode(queue_message)
        if isinstance(decoded, Err):
            return NotificationResult(success=False, error_message=decoded.detail)
        event_json = decoded.value

        try:
            document = json.loads(event_json)
        except ValueError as exc:
            return NotificationResult(
                success=False,
                error_message=f"Failed to deserialize Stripe event from queue message: {exc}",
            )
        if not isinstance(document, dict):
            return NotificationResult(
                success=False,
                error_message="Failed to deserialize Stripe event from queue message.",
            )

        contact = self._extractor.extract(event_json)
        logger.debug(
            "Extracted contact for event %s: email=%s phone=%s amount=%d",
            document.get("id"),
            bool(contact.email),
            bool(contact.phone),
            contact.amount_minor_units,
        )
        return await self._dispatcher.dispatch(contact, self._email, self._sms)

    def _log_audit(self, result: NotificationResult) -> None:
        if not self._audit:
            return
        try:
            self._audit.log(AuditEvent(
                event_type=(
                    AuditEventType.NOTIFICATION_PROCESSED if result.success
                    else AuditEventType.NOTIFICATION_FAILED
                ),
                action="payment_notification",
                result="success" if result.success else "failure",
                risk_level=RiskLevel.INFO if result.success else RiskLevel.MEDIUM,
                details={
                    "email_status": result.email_status,
                    "sms_status": result.sms_status,
                    "error": result.error_message,
                },
            ))
        except OSError:
            logger.exception("Failed to write audit event for payment notification")
