"""Payment settlement: the only path that completes an online payment.

SettlePayment runs as one unit of work. The order is read, checked for an
earlier settlement and changed inside that same unit of work, and every save
is checked against the version that was read. Of two racing deliveries of
the same capture, one commits and the other fails and is re-delivered,
finding the order already settled.

Inside the unit of work, in order:
    payment COMPLETED / order PROCESSING -> stock withdrawn for every line
    -> cart cleared -> coupon usage recorded

Any failure aborts all of it. A binding conflict (stock ran out, coupon
quota exhausted) is then recorded with FailPayment in a separate unit of
work by the caller.
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.catalogue.stock import withdraw_stock
from checkout.discount import ledger
from checkout.domain import checkout
from checkout.order.order import Order, OrderStatus, PaymentStatus

logger = structlog.get_logger(__name__)


class SettlementOutcome(Enum):
    SETTLED = "settled"
    DUPLICATE = "duplicate"
    UNKNOWN_ORDER = "unknown_order"
    NEEDS_RECONCILIATION = "needs_reconciliation"


@dataclass(frozen=True)
class SettlementResult:
    outcome: SettlementOutcome
    order_id: str | None = None


@checkout.command(part_of="Order")
class SettlePayment:
    gateway_order_ref = String(required=True, max_length=255)
    gateway_payment_ref = String(required=True, max_length=255)
    gateway_signature = String(max_length=255)


@checkout.command(part_of="Order")
class FailPayment:
    gateway_order_ref = String(required=True, max_length=255)
    reason = String(required=True, max_length=500)


@checkout.command_handler(part_of=Order)
class SettlementHandler:
    @handle(SettlePayment)
    def settle_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.by_gateway_order_ref(command.gateway_order_ref)

        if order is None:
            logger.warning("Capture for unknown gateway order", gateway_order_ref=command.gateway_order_ref)
            return SettlementResult(SettlementOutcome.UNKNOWN_ORDER)

        if order.payment_status == PaymentStatus.COMPLETED.value:
            logger.info("Capture already settled", order_id=str(order.id))
            return SettlementResult(SettlementOutcome.DUPLICATE, str(order.id))

        if order.payment_status == PaymentStatus.FAILED.value or order.status != OrderStatus.PENDING.value:
            logger.error(
                "Capture received for an order that can no longer be paid",
                order_id=str(order.id),
                gateway_order_ref=command.gateway_order_ref,
                gateway_payment_ref=command.gateway_payment_ref,
                status=order.status,
                payment_status=order.payment_status,
            )
            return SettlementResult(SettlementOutcome.NEEDS_RECONCILIATION, str(order.id))

        order_id = str(order.id)
        order.settle_payment(command.gateway_payment_ref, command.gateway_signature)
        repo.add(order)

        withdraw_stock(order.items, order_id)
        current_domain.repository_for(Cart).clear_for(str(order.customer_id), order_id)
        if order.applied_discount_id:
            ledger.record_usage(str(order.applied_discount_id), str(order.customer_id), order_id)

        logger.info(
            "Payment settled",
            order_id=order_id,
            gateway_payment_ref=command.gateway_payment_ref,
            final_amount=order.pricing.final_amount,
        )
        return SettlementResult(SettlementOutcome.SETTLED, order_id)

    @handle(FailPayment)
    def fail_payment(self, command):
        """Mark a still-pending order FAILED. Returns whether anything changed."""
        repo = current_domain.repository_for(Order)
        order = repo.by_gateway_order_ref(command.gateway_order_ref)
        if order is None or order.payment_status != PaymentStatus.PENDING.value:
            return False
        if order.status != OrderStatus.PENDING.value:
            return False

        order.fail_payment(command.reason)
        repo.add(order)
        logger.warning("Payment marked failed", order_id=str(order.id), reason=command.reason)
        return True
