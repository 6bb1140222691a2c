"""Process configuration, read once at startup and passed into components."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

_DEFAULT_FROM_EMAIL = "no-reply@example.com"
_DEFAULT_FROM_NAME = "Stripe Demo"
_DEFAULT_AUDIT_MAX_BYTES = 10_485_760
_DEFAULT_AUDIT_BACKUP_COUNT = 5


class Settings(BaseModel):
    """Immutable settings value object.

    Missing sender credentials are valid: the matching channel is disabled.
    """

    model_config = ConfigDict(frozen=True)

    stripe_webhook_secret: str | None = None
    webhook_tolerance_seconds: int | None = None
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str = _DEFAULT_FROM_EMAIL
    sendgrid_from_name: str = _DEFAULT_FROM_NAME
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_from_number: str | None = None
    audit_log_path: str | None = None
    audit_log_max_bytes: int = _DEFAULT_AUDIT_MAX_BYTES
    audit_log_backup_count: int = _DEFAULT_AUDIT_BACKUP_COUNT

    @property
    def email_enabled(self) -> bool:
        return bool(self.sendgrid_api_key)

    @property
    def sms_enabled(self) -> bool:
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_number
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables (``os.environ`` by default)."""
        env = os.environ if environ is None else environ
        tolerance = env.get("STRIPE_WEBHOOK_TOLERANCE_SECONDS")
        return cls(
            stripe_webhook_secret=env.get("STRIPE_WEBHOOK_SECRET") or None,
            webhook_tolerance_seconds=int(tolerance) if tolerance else None,
            sendgrid_api_key=env.get("SENDGRID_API_KEY") or None,
            sendgrid_from_email=env.get("SENDGRID_FROM_EMAIL", _DEFAULT_FROM_EMAIL),
            sendgrid_from_name=env.get("SENDGRID_FROM_NAME", _DEFAULT_FROM_NAME),
            twilio_account_sid=env.get("TWILIO_ACCOUNT_SID") or None,
            twilio_auth_token=env.get("TWILIO_AUTH_TOKEN") or None,
            twilio_from_number=env.get("TWILIO_FROM_NUMBER") or None,
            audit_log_path=env.get("AUDIT_LOG_PATH") or None,
            audit_log_max_bytes=int(
                env.get("AUDIT_LOG_MAX_BYTES") or _DEFAULT_AUDIT_MAX_BYTES,
            ),
            audit_log_backup_count=int(
                env.get("AUDIT_LOG_BACKUP_COUNT") or _DEFAULT_AUDIT_BACKUP_COUNT,
            ),
        )
