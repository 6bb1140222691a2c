"""Two-pass extraction of customer contact data from a Stripe event.

The typed pass validates the event through the schemas in
``stripe_models``. Anything those schemas drop, or that fails validation,
is looked up again in the raw JSON under ``data.object``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from paynotify.models import ContactInfo, Err, ErrorKind, Ok
from paynotify.notification.stripe_models import CheckoutSession, StripeEvent
from paynotify.webhook.classifier import CHECKOUT_SESSION_COMPLETED

logger = logging.getLogger(__name__)


class ContactExtractor:
    """Pulls email, phone and amount out of ``checkout.session.completed`` events.

    The schema classes are injectable so a narrower (older) schema can be
    used; the raw pass fills whatever that schema does not carry.
    """

    def __init__(
        self,
        event_model: type[StripeEvent] = StripeEvent,
        session_model: type[CheckoutSession] = CheckoutSession,
    ) -> None:
        self._event_model = event_model
        self._session_model = session_model

    def extract(self, event_json: bytes) -> ContactInfo:
        typed = self._parse_typed(event_json)
        if isinstance(typed, Ok):
            event_type: object = typed.value.type
        else:
            logger.debug("Typed event parse failed: %s", typed.detail)
            event_type = _load_raw(event_json).get("type")

        if event_type != CHECKOUT_SESSION_COMPLETED:
            return ContactInfo()

        fields = self._read_session(typed.value) if isinstance(typed, Ok) else {}
        if not (fields.get("email") and fields.get("phone") and fields.get("amount")):
            _fill_from_raw(event_json, fields)

        return ContactInfo(
            email=fields.get("email") or None,
            phone=fields.get("phone") or None,
            amount_minor_units=fields.get("amount") or 0,
            currency=(fields.get("currency") or "usd").lower(),
        )

    def _parse_typed(self, event_json: bytes) -> Ok[StripeEvent] | Err:
        try:
            return Ok(self._event_model.model_validate_json(event_json))
        except ValidationError as exc:
            return Err(ErrorKind.PARSE, str(exc))

    def _read_session(self, event: StripeEvent) -> dict[str, Any]:
        try:
            session = self._session_model.model_validate(event.data.object)
        except ValidationError as exc:
            logger.debug("Checkout session did not match schema: %s", exc)
            return {}

        generic = session.model_dump(exclude_none=True)
        details = generic.get("customer_details") or {}
        return {
            "email": details.get("email"),
            "phone": details.get("phone"),
            "amount": generic.get("amount_total"),
            "currency": generic.get("currency"),
        }


def _load_raw(event_json: bytes) -> dict[str, Any]:
    try:
        root = json.loads(event_json)
    except ValueError as exc:
        logger.debug("Raw event parse failed: %s", exc)
        return {}
    return root if isinstance(root, dict) else {}


def _fill_from_raw(event_json: bytes, fields: dict[str, Any]) -> None:
    """Fill only the still-missing fields straight from the raw JSON."""
    data = _load_raw(event_json).get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    if not isinstance(obj, dict):
        return

    details = obj.get("customer_details")
    if isinstance(details, dict):
        for key in ("email", "phone"):
            value = details.get(key)
            if not fields.get(key) and isinstance(value, str):
                fields[key] = value

    amount = obj.get("amount_total")
    if not fields.get("amount") and isinstance(amount, int) and not isinstance(amount, bool):
        fields["amount"] = amount

    currency = obj.get("currency")
    if not fields.get("currency") and isinstance(currency, str):
        fields["currency"] = currency
