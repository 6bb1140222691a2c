"""Decides which verified events are forwarded to the notification queue."""

from __future__ import annotations

from dataclasses import dataclass

from paynotify.models import WebhookEvent

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"

RECOGNIZED_EVENT_TYPES = frozenset({CHECKOUT_SESSION_COMPLETED, PAYMENT_INTENT_SUCCEEDED})


@dataclass(frozen=True)
class Classification:
    queue: bool
    log_message: str


class EventClassifier:
    """Recognized event types are queued; every other type is only logged."""

    def __init__(self, recognized: frozenset[str] = RECOGNIZED_EVENT_TYPES) -> None:
        self._recognized = recognized

    def classify(self, event: WebhookEvent) -> Classification:
        if event.type in self._recognized:
            return Classification(
                queue=True,
                log_message=f"Published Stripe event {event.id} to queue.",
            )
        return Classification(
            queue=False,
            log_message=f"Ignored Stripe event type: {event.type}",
        )
