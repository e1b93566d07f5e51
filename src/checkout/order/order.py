"""Order aggregate: a priced, durable order and its two state machines.

Fulfillment status:
    PENDING -> PROCESSING -> SHIPPED -> DELIVERED
    PENDING | PROCESSING -> CANCELLED | FAILED

Payment status:
    PENDING -> COMPLETED | FAILED

The two are tracked separately. A cash-on-delivery order moves to PROCESSING
while its payment stays PENDING (cash is collected on delivery). An online
order does not leave PENDING until its payment is COMPLETED, and only the
settlement handler completes a payment.

Line prices are frozen when the order is placed and never recomputed from
the catalogue.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from checkout.domain import checkout
from checkout.order.events import (
    CashOnDeliveryAccepted,
    GatewayOrderAttached,
    OrderAbandoned,
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderShipped,
    PaymentFailed,
    PaymentSettled,
)


class OrderStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    CARD = "CARD"
    UPI = "UPI"
    NET_BANKING = "NET_BANKING"
    WALLET = "WALLET"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED, OrderStatus.FAILED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.FAILED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.FAILED: set(),  # Terminal
}

_VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: set(),
    PaymentStatus.FAILED: set(),
}


@checkout.value_object(part_of="Order")
class OrderPricing:
    """Price breakdown locked in when the order was placed."""

    subtotal = Float(default=0.0)
    discount_amount = Float(default=0.0)
    handling_fee = Float(default=0.0)
    delivery_fee = Float(default=0.0)
    final_amount = Float(default=0.0)
    currency = String(max_length=3, default="INR")


@checkout.entity(part_of="Order")
class OrderLine:
    book_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    seller_id = Identifier()


@checkout.aggregate
class Order:
    customer_id = Identifier(required=True)
    idempotency_key = String(max_length=255)
    request_fingerprint = String(max_length=64)
    items = HasMany(OrderLine)
    pricing = ValueObject(OrderPricing)
    applied_discount_id = Identifier()
    coupon_code = String(max_length=50)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(required=True, choices=PaymentMethod)
    gateway_order_ref = String(max_length=255)
    gateway_payment_ref = String(max_length=255)
    gateway_signature = String(max_length=255)
    failure_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()
    settled_at = DateTime()

    @invariant.post
    def final_amount_must_match_breakdown(self):
        pricing = self.pricing
        if pricing is None or pricing.final_amount is None:
            return
        expected = max(0.0, pricing.subtotal - pricing.discount_amount) + pricing.handling_fee + pricing.delivery_fee
        if abs(expected - pricing.final_amount) > 0.005:
            raise ValidationError(
                {"pricing": [f"Final amount {pricing.final_amount:.2f} does not match breakdown {expected:.2f}"]}
            )

    @invariant.post
    def online_order_cannot_progress_before_payment(self):
        if (
            self.payment_method != PaymentMethod.CASH_ON_DELIVERY.value
            and self.status in (OrderStatus.PROCESSING.value, OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value)
            and self.payment_status != PaymentStatus.COMPLETED.value
        ):
            raise ValidationError({"status": ["Online orders cannot be fulfilled before payment completes"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        lines,
        breakdown,
        currency,
        payment_method,
        coupon_code=None,
        applied_discount_id=None,
        idempotency_key=None,
        request_fingerprint=None,
    ):
        """Create a PENDING order from priced lines.

        Args:
            lines: List of dicts with book_id, title, quantity, unit_price, seller_id.
            breakdown: A PriceBreakdown computed for those lines.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one line"]})

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            idempotency_key=idempotency_key,
            request_fingerprint=request_fingerprint,
            items=[OrderLine(**line) for line in lines],
            pricing=OrderPricing(currency=currency, **breakdown.to_dict()),
            applied_discount_id=applied_discount_id,
            coupon_code=coupon_code,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=payment_method,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                items=json.dumps([{**line, "book_id": str(line["book_id"])} for line in lines], default=str),
                payment_method=payment_method,
                subtotal=breakdown.subtotal,
                discount_amount=breakdown.discount_amount,
                handling_fee=breakdown.handling_fee,
                delivery_fee=breakdown.delivery_fee,
                final_amount=breakdown.final_amount,
                currency=currency,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def is_cash_on_delivery(self) -> bool:
        return self.payment_method == PaymentMethod.CASH_ON_DELIVERY.value

    @property
    def amount_minor(self) -> int:
        """Final amount in the currency's minor unit (paise for INR)."""
        return int(round(self.pricing.final_amount * 100))

    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _assert_payment_can_transition(self, target_status):
        current = PaymentStatus(self.payment_status)
        if target_status not in _VALID_PAYMENT_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot transition payment from {current.value} to {target_status.value}"]}
            )

    def _assert_online(self):
        if self.is_cash_on_delivery:
            raise ValidationError({"payment_method": ["Cash-on-delivery orders have no online payment"]})

    # -------------------------------------------------------------------
    # Payment lifecycle
    # -------------------------------------------------------------------
    def accept_cash_on_delivery(self):
        if not self.is_cash_on_delivery:
            raise ValidationError({"payment_method": ["Only cash-on-delivery orders are accepted without payment"]})
        self._assert_can_transition(OrderStatus.PROCESSING)

        now = datetime.now(UTC)
        self.status = OrderStatus.PROCESSING.value
        self.updated_at = now
        self.raise_(
            CashOnDeliveryAccepted(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                final_amount=self.pricing.final_amount,
                accepted_at=now,
            )
        )

    def attach_gateway_order(self, gateway_order_ref):
        self._assert_online()
        if self.gateway_order_ref:
            raise ValidationError({"gateway_order_ref": ["A gateway order is already attached"]})
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": ["Gateway orders can only be attached to pending orders"]})

        self.gateway_order_ref = gateway_order_ref
        self.updated_at = datetime.now(UTC)
        self.raise_(
            GatewayOrderAttached(
                order_id=str(self.id),
                gateway_order_ref=gateway_order_ref,
                amount_minor=self.amount_minor,
                currency=self.pricing.currency,
            )
        )

    def settle_payment(self, gateway_payment_ref, gateway_signature=None):
        """Record a verified capture: payment COMPLETED, order PROCESSING."""
        self._assert_online()
        if not self.gateway_order_ref:
            raise ValidationError({"gateway_order_ref": ["No gateway order is attached to this order"]})
        self._assert_payment_can_transition(PaymentStatus.COMPLETED)
        self._assert_can_transition(OrderStatus.PROCESSING)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.COMPLETED.value
            self.status = OrderStatus.PROCESSING.value
            self.gateway_payment_ref = gateway_payment_ref
            self.gateway_signature = gateway_signature
            self.settled_at = now
            self.updated_at = now
        self.raise_(
            PaymentSettled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                gateway_order_ref=self.gateway_order_ref,
                gateway_payment_ref=gateway_payment_ref,
                final_amount=self.pricing.final_amount,
                settled_at=now,
            )
        )

    def fail_payment(self, reason):
        """Mark the payment and the order FAILED."""
        self._assert_payment_can_transition(PaymentStatus.FAILED)
        self._assert_can_transition(OrderStatus.FAILED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.FAILED.value
            self.status = OrderStatus.FAILED.value
            self.failure_reason = reason
            self.updated_at = now
        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                reason=reason,
                failed_at=now,
            )
        )

    def abandon(self, reason):
        """Retire an online order whose payment never arrived.

        Payment becomes FAILED and the order CANCELLED. Nothing was withdrawn
        from stock or taken from the cart for such an order, so nothing is
        given back.
        """
        self._assert_online()
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": ["Only pending orders can be abandoned"]})
        self._assert_payment_can_transition(PaymentStatus.FAILED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.FAILED.value
            self.status = OrderStatus.CANCELLED.value
            self.failure_reason = reason
            self.updated_at = now
        self.raise_(
            OrderAbandoned(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                reason=reason,
                abandoned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def ship(self):
        self._assert_can_transition(OrderStatus.SHIPPED)

        now = datetime.now(UTC)
        self.status = OrderStatus.SHIPPED.value
        self.updated_at = now
        self.raise_(OrderShipped(order_id=str(self.id), shipped_at=now))

    def deliver(self):
        self._assert_can_transition(OrderStatus.DELIVERED)

        now = datetime.now(UTC)
        self.status = OrderStatus.DELIVERED.value
        self.updated_at = now
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    def cancel(self, reason=None):
        """Cancel a PENDING or PROCESSING order.

        An unpaid online order can no longer be paid once cancelled, so its
        payment is closed as FAILED.
        """
        previous = OrderStatus(self.status)
        self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        with atomic_change(self):
            if not self.is_cash_on_delivery and self.payment_status == PaymentStatus.PENDING.value:
                self.payment_status = PaymentStatus.FAILED.value
            self.status = OrderStatus.CANCELLED.value
            self.failure_reason = reason
            self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=previous.value,
                reason=reason,
                cancelled_at=now,
            )
        )
