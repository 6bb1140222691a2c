"""Inbound webhook pipeline: verify, classify, encode for the queue."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from paynotify.models import (
    AuditEvent,
    AuditEventType,
    Err,
    ErrorKind,
    RiskLevel,
    WebhookResult,
)
from paynotify.queue import codec
from paynotify.webhook.classifier import EventClassifier
from paynotify.webhook.signature import SignatureVerifier

if TYPE_CHECKING:
    from paynotify.audit.logger import AuditLogger

logger = logging.getLogger(__name__)

_ERROR_PREFIX = {
    ErrorKind.SIGNATURE_MISMATCH: "Invalid Stripe signature: ",
    ErrorKind.PARSE: "Invalid Stripe event payload: ",
}


class StripeWebhookService:
    """Composes signature verification and event classification.

    A verification failure short-circuits: the result is invalid and carries
    no queue message.
    """

    def __init__(
        self,
        verifier: SignatureVerifier | None = None,
        classifier: EventClassifier | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._verifier = verifier or SignatureVerifier()
        self._classifier = classifier or EventClassifier()
        self._audit = audit_logger

    def process_event(
        self,
        payload: bytes,
        signature_header: str | None,
        secret: str | None,
    ) -> WebhookResult:
        outcome = self._verifier.verify(payload, signature_header, secret)
        if isinstance(outcome, Err):
            message = _ERROR_PREFIX.get(outcome.kind, "") + outcome.detail
            logger.warning("Rejected Stripe webhook (%s): %s", outcome.kind.value, outcome.detail)
            self._log_audit(
                AuditEventType.WEBHOOK_REJECTED,
                result="failure",
                risk_level=RiskLevel.HIGH,
                details={"reason": outcome.kind.value},
            )
            return WebhookResult(is_valid=False, error_message=message)

        event = outcome.value
        classification = self._classifier.classify(event)
        if not classification.queue:
            self._log_audit(
                AuditEventType.WEBHOOK_IGNORED,
                result="ignored",
                risk_level=RiskLevel.INFO,
                details={"event_id": event.id, "event_type": event.type},
            )
            return WebhookResult(is_valid=True, log_message=classification.log_message)

        self._log_audit(
            AuditEventType.WEBHOOK_ACCEPTED,
            result="success",
            risk_level=RiskLevel.INFO,
            details={"event_id": event.id, "event_type": event.type},
        )
        return WebhookResult(
            is_valid=True,
            queue_message=codec.encode(event),
            log_message=classification.log_message,
        )

    def _log_audit(
        self,
        event_type: AuditEventType,
        result: str,
        risk_level: RiskLevel,
        details: dict[str, object],
    ) -> None:
        if not self._audit:
            return
        try:
            self._audit.log(AuditEvent(
                event_type=event_type,
                action="stripe_webhook",
                result=result,
                risk_level=risk_level,
                details=details,
            ))
        except OSError:
            logger.exception("Failed to write audit event %s", event_type.value)
