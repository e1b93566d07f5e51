"""Domain events for the Discount aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Discount")
class DiscountCreated:
    """A new coupon became available."""

    __version__ = 1

    discount_id = Identifier(required=True)
    coupon_code = String(required=True)
    discount_type = String(required=True)
    value = Float(required=True)
    created_at = DateTime(required=True)


@checkout.event(part_of="Discount")
class DiscountDeactivated:
    """A coupon was switched off."""

    __version__ = 1

    discount_id = Identifier(required=True)
    coupon_code = String(required=True)
    deactivated_at = DateTime(required=True)


@checkout.event(part_of="Discount")
class CouponRedeemed:
    """A settled order consumed one use of a coupon."""

    __version__ = 1

    discount_id = Identifier(required=True)
    coupon_code = String(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    times_used = Integer(required=True)
    customer_uses = Integer(required=True)
    redeemed_at = DateTime(required=True)
