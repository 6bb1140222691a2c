"""Queue message codec: base64 of the JSON-serialized event."""

from __future__ import annotations

import base64
import binascii

from paynotify.models import Err, ErrorKind, Ok, WebhookEvent


def encode(event: WebhookEvent) -> str:
    return base64.b64encode(event.to_json().encode("utf-8")).decode("ascii")


def decode(message: str) -> Ok[bytes] | Err:
    """Decode a queue message back to event JSON bytes.

    Parsing the JSON is left to the caller.
    """
    try:
        return Ok(base64.b64decode(message, validate=True))
    except (binascii.Error, ValueError) as exc:
        return Err(ErrorKind.DECODE, f"Invalid base64 queue message: {exc}")
