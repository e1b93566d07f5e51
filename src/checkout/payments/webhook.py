"""Webhook verifier.

A payment notification is trusted only if the HMAC-SHA256 of its exact raw
body, keyed by the shared webhook secret, matches the hex signature the
gateway sent. The body is verified before it is parsed; a re-serialized JSON
document would not reproduce the signed bytes.
"""

import hashlib
import hmac
import json
from dataclasses import dataclass

from checkout.errors import InvalidPayload, SignatureError

SIGNATURE_HEADER = "X-Webhook-Signature"
CAPTURE_EVENT = "payment.captured"


@dataclass(frozen=True)
class WebhookEvent:
    event_type: str
    gateway_order_ref: str | None = None
    gateway_payment_ref: str | None = None

    @property
    def is_capture(self) -> bool:
        return self.event_type == CAPTURE_EVENT


def sign(raw_body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of `raw_body` keyed by `secret`."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify(raw_body: bytes, signature: str | None, secret: str) -> dict:
    """Return the parsed payload if `signature` authenticates `raw_body`.

    Raises SignatureError when the secret is not configured, the signature is
    missing, or it does not match. Raises InvalidPayload when an authentic
    body is not a JSON object.
    """
    if not secret:
        raise SignatureError("Webhook secret is not configured")
    if not signature:
        raise SignatureError("Missing webhook signature")

    # Headers arrive latin-1 decoded; compare bytes so stray non-ASCII fails closed.
    expected = sign(raw_body, secret).encode("ascii")
    supplied = signature.strip().lower().encode("utf-8", "surrogateescape")
    if not hmac.compare_digest(expected, supplied):
        raise SignatureError("Webhook signature mismatch")

    try:
        payload = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidPayload("Webhook body is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise InvalidPayload("Webhook body must be a JSON object")
    return payload


def parse_event(payload: dict) -> WebhookEvent:
    """Pull the event type and the gateway references out of a verified payload."""
    event_type = payload.get("event")
    if not isinstance(event_type, str) or not event_type:
        raise InvalidPayload("Webhook payload has no event type")

    entity = payload
    for key in ("payload", "payment", "entity"):
        entity = entity.get(key) if isinstance(entity, dict) else None
    if entity is None:
        entity = {}
    if not isinstance(entity, dict):
        raise InvalidPayload("Webhook payment entity must be an object")

    return WebhookEvent(
        event_type=event_type,
        gateway_order_ref=entity.get("order_id") or None,
        gateway_payment_ref=entity.get("id") or None,
    )
