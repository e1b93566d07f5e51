"""Order confirmation messages.

Sent after the order's unit of work has committed, outside any domain
context (a FastAPI background task), so the message carries everything it
needs. Delivery is best effort: failures are logged and never raised.
"""

from dataclasses import dataclass

import structlog

from checkout.notifications import get_notifier

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderConfirmation:
    order_id: str
    customer_id: str
    final_amount: float
    currency: str
    payment_method: str

    @classmethod
    def of(cls, order) -> "OrderConfirmation":
        return cls(
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            final_amount=order.pricing.final_amount,
            currency=order.pricing.currency,
            payment_method=order.payment_method,
        )

    @property
    def subject(self) -> str:
        return f"Your order {self.order_id} is confirmed"

    @property
    def body(self) -> str:
        if self.payment_method == "CASH_ON_DELIVERY":
            payment_line = f"Please keep {self.final_amount:.2f} {self.currency} ready for payment on delivery."
        else:
            payment_line = f"We received your payment of {self.final_amount:.2f} {self.currency}."
        return f"Thank you for your order {self.order_id}. {payment_line} We will let you know when it ships."


def send_order_confirmation(confirmation: OrderConfirmation) -> bool:
    """Send the confirmation; returns whether it was delivered."""
    try:
        result = get_notifier().send(confirmation.customer_id, confirmation.subject, confirmation.body)
    except Exception:
        logger.exception("Order confirmation failed", order_id=confirmation.order_id)
        return False

    if result.get("status") != "sent":
        logger.warning(
            "Order confirmation not delivered",
            order_id=confirmation.order_id,
            error=result.get("error"),
        )
        return False

    logger.info("Order confirmation sent", order_id=confirmation.order_id, message_id=result.get("message_id"))
    return True
