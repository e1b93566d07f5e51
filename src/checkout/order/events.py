"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """A priced order was created from a customer's cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line dicts
    payment_method = String(required=True)
    subtotal = Float(required=True)
    discount_amount = Float(required=True)
    handling_fee = Float(required=True)
    delivery_fee = Float(required=True)
    final_amount = Float(required=True)
    currency = String(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class CashOnDeliveryAccepted:
    """A cash-on-delivery order went straight to processing."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    final_amount = Float(required=True)
    accepted_at = DateTime(required=True)


@checkout.event(part_of="Order")
class GatewayOrderAttached:
    """The payment gateway issued a remote payment for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    gateway_order_ref = String(required=True)
    amount_minor = Integer(required=True)
    currency = String(required=True)


@checkout.event(part_of="Order")
class PaymentSettled:
    """A verified payment capture was applied to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    gateway_order_ref = String(required=True)
    gateway_payment_ref = String(required=True)
    final_amount = Float(required=True)
    settled_at = DateTime(required=True)


@checkout.event(part_of="Order")
class PaymentFailed:
    """Payment for the order could not be settled."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderAbandoned:
    """An online order never received its payment and was retired."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True)
    abandoned_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderShipped:
    """The order left the warehouse."""

    __version__ = 1

    order_id = Identifier(required=True)
    shipped_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before it shipped."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
