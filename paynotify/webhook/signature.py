"""Stripe webhook signature verification.

Header format: ``t=<unix-seconds>,v1=<hex-hmac-sha256>``. Several ``v1``
entries may be present while a secret is being rolled; any match is
accepted. The signed string is ``"{t}.{payload}"`` keyed by the endpoint
secret.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time

from paynotify.models import Err, ErrorKind, Ok, WebhookEvent

logger = logging.getLogger(__name__)

_SCHEME = "v1"


def compute_signature(payload: bytes, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def sign(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a ``Stripe-Signature`` header value for *payload*."""
    ts = int(time.time()) if timestamp is None else timestamp
    return f"t={ts},{_SCHEME}={compute_signature(payload, secret, ts)}"


def parse_signature_header(header: str) -> tuple[int, list[str]] | None:
    """Split a signature header into (timestamp, v1 signatures).

    Returns None if the timestamp or every v1 entry is missing.
    """
    timestamp: int | None = None
    signatures: list[str] = []
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                return None
        elif key == _SCHEME and value:
            signatures.append(value)
    if timestamp is None or not signatures:
        return None
    return timestamp, signatures


class SignatureVerifier:
    """Verifies inbound webhook payloads against the shared secret.

    ``tolerance_seconds`` is off by default, so any timestamp is accepted
    once the digest matches. Set it to reject stale (replayed) deliveries.
    """

    def __init__(self, tolerance_seconds: int | None = None) -> None:
        self._tolerance_seconds = tolerance_seconds

    def verify(
        self,
        payload: bytes,
        signature_header: str | None,
        secret: str | None,
    ) -> Ok[WebhookEvent] | Err:
        if not secret or not signature_header:
            return Err(ErrorKind.CONFIG, "Missing Stripe webhook secret or signature.")

        parsed = parse_signature_header(signature_header)
        if parsed is None:
            return Err(
                ErrorKind.SIGNATURE_MISMATCH,
                "Unable to extract timestamp and signatures from header",
            )
        timestamp, signatures = parsed

        expected = compute_signature(payload, secret, timestamp).encode()
        # Compare against every candidate, not just the first
        matched = [
            hmac.compare_digest(expected, sig.encode("utf-8", "replace")) for sig in signatures
        ]
        if not any(matched):
            return Err(
                ErrorKind.SIGNATURE_MISMATCH,
                "No signatures found matching the expected signature for payload",
            )

        if self._tolerance_seconds is not None:
            age = int(time.time()) - timestamp
            if age > self._tolerance_seconds:
                return Err(
                    ErrorKind.SIGNATURE_MISMATCH,
                    f"Timestamp outside the tolerance zone ({age}s)",
                )

        return _parse_event(payload)


def _parse_event(payload: bytes) -> Ok[WebhookEvent] | Err:
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        return Err(ErrorKind.PARSE, f"Malformed event JSON: {exc}")

    if not isinstance(data, dict):
        return Err(ErrorKind.PARSE, "Event payload is not a JSON object")
    event_id = data.get("id")
    event_type = data.get("type")
    if not isinstance(event_id, str) or not isinstance(event_type, str):
        return Err(ErrorKind.PARSE, "Event payload is missing 'id' or 'type'")

    return Ok(WebhookEvent(id=event_id, type=event_type, raw_payload=payload))
