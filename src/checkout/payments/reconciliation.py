"""Webhook processing pipeline.

verify signature -> parse -> ignore non-capture events -> settle

Outcomes the gateway should stop retrying are returned (the API answers 200).
Signature and payload problems raise their CheckoutError (400). A binding
settlement conflict aborts the settlement, marks the order failed in a
separate unit of work, and is returned as FAILED. Anything else (storage
errors, a concurrent writer winning the version check) propagates, leaving
the order PENDING so the gateway re-delivers the webhook.
"""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from checkout.config import get_settings
from checkout.errors import ConflictError, InvalidPayload, SignatureError
from checkout.order.settlement import FailPayment, SettlementOutcome, SettlePayment
from checkout.payments import webhook
from checkout.utils.logging import add_context

logger = structlog.get_logger(__name__)

IGNORED = "ignored"
FAILED = "failed"


@dataclass(frozen=True)
class WebhookAck:
    status: str
    order_id: str | None = None


def process_payment_webhook(raw_body: bytes, signature: str | None) -> WebhookAck:
    try:
        payload = webhook.verify(raw_body, signature, get_settings().webhook_secret)
    except SignatureError as exc:
        logger.warning("security: webhook signature rejected", reason=exc.message, body_size=len(raw_body))
        raise

    event = webhook.parse_event(payload)
    add_context(event_type=event.event_type, gateway_order_ref=event.gateway_order_ref)

    if not event.is_capture:
        logger.info("Ignoring webhook event")
        return WebhookAck(status=IGNORED)

    if not event.gateway_order_ref or not event.gateway_payment_ref:
        raise InvalidPayload(
            "Capture event is missing the order or payment reference",
            gateway_order_ref=event.gateway_order_ref,
            gateway_payment_ref=event.gateway_payment_ref,
        )

    try:
        result = current_domain.process(
            SettlePayment(
                gateway_order_ref=event.gateway_order_ref,
                gateway_payment_ref=event.gateway_payment_ref,
                gateway_signature=signature,
            ),
            asynchronous=False,
        )
    except ConflictError as exc:
        logger.error(
            "Settlement conflict, payment needs manual reconciliation",
            gateway_payment_ref=event.gateway_payment_ref,
            error_code=exc.code,
            error=exc.message,
            details=exc.details,
        )
        _mark_failed(event.gateway_order_ref, exc.message)
        return WebhookAck(status=FAILED)

    if result.outcome == SettlementOutcome.NEEDS_RECONCILIATION:
        logger.error("Capture for a closed order, refund or reconcile manually", order_id=result.order_id)
    return WebhookAck(status=result.outcome.value, order_id=result.order_id)


def _mark_failed(gateway_order_ref: str, reason: str) -> None:
    """Best effort: the conflict is already logged for reconciliation."""
    try:
        current_domain.process(
            FailPayment(gateway_order_ref=gateway_order_ref, reason=reason[:500]),
            asynchronous=False,
        )
    except Exception:
        logger.exception("Could not mark order as failed", gateway_order_ref=gateway_order_ref)
