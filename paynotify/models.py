"""Shared data models for paynotify."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

# --- Enums ---


class ErrorKind(str, Enum):
    CONFIG = "config"
    SIGNATURE_MISMATCH = "signature_mismatch"
    PARSE = "parse"
    DECODE = "decode"
    DISPATCH = "dispatch"


class AuditEventType(str, Enum):
    WEBHOOK_ACCEPTED = "webhook_accepted"
    WEBHOOK_IGNORED = "webhook_ignored"
    WEBHOOK_REJECTED = "webhook_rejected"
    NOTIFICATION_PROCESSED = "notification_processed"
    NOTIFICATION_FAILED = "notification_failed"


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Result variants ---


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str


# --- Webhook Models ---


class WebhookEvent(BaseModel):
    """A provider event whose signature has been verified."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    raw_payload: bytes

    def document(self) -> dict[str, Any]:
        return json.loads(self.raw_payload)

    def to_json(self) -> str:
        return json.dumps(self.document(), separators=(",", ":"))


class WebhookResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    error_message: str | None = None
    queue_message: str | None = None
    log_message: str | None = None


# --- Notification Models ---


class ContactInfo(BaseModel):
    """Contact data pulled from a payment event. Amount is in minor units."""

    model_config = ConfigDict(frozen=True)

    email: str | None = None
    phone: str | None = None
    amount_minor_units: int = 0
    currency: str = "usd"


class NotificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    error_message: str | None = None
    email_status: str | None = None
    sms_status: str | None = None


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    action: str
    result: str  # "success" | "failure" | "ignored"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
