"""Shared test fixtures for paynotify."""

from __future__ import annotations

import base64
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from paynotify.audit.logger import AuditLogger
from paynotify.models import AuditEvent, AuditEventType, RiskLevel
from paynotify.webhook.signature import sign

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


# --- Factory functions for test data ---


def make_checkout_event(
    event_id: str = "evt_1",
    email: str | None = "cust@example.com",
    phone: str | None = None,
    amount_total: int | None = 5000,
    **object_fields: Any,
) -> dict[str, Any]:
    """Factory for a checkout.session.completed event document."""
    details: dict[str, Any] = {}
    if email is not None:
        details["email"] = email
    if phone is not None:
        details["phone"] = phone
    obj: dict[str, Any] = {"id": "cs_test_1", "object": "checkout.session"}
    if details:
        obj["customer_details"] = details
    if amount_total is not None:
        obj["amount_total"] = amount_total
    obj.update(object_fields)
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {"object": obj},
    }


def to_bytes(document: dict[str, Any]) -> bytes:
    return json.dumps(document).encode()


def to_queue_message(document: dict[str, Any]) -> str:
    return base64.b64encode(to_bytes(document)).decode()


def signed_headers(payload: bytes, secret: str = WEBHOOK_SECRET) -> dict[str, str]:
    return {"stripe-signature": sign(payload, secret)}


def make_channel(name: str, status: str | None = "ok") -> MagicMock:
    """Factory for an enabled notification channel with a mocked send."""
    channel = MagicMock()
    channel.name = name
    channel.enabled = True
    channel.send = AsyncMock(return_value=status)
    return channel


def make_audit_event(**kwargs: object) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, object] = {
        "event_type": AuditEventType.WEBHOOK_REJECTED,
        "action": "stripe_webhook",
        "result": "failure",
        "risk_level": RiskLevel.HIGH,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)  # type: ignore[arg-type]
