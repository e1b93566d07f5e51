"""Discount ledger.

`validate` answers whether a coupon applies to a customer's cart right now
and never touches the counters. `record_usage` is the only writer of the
counters, and is called from the settling unit of work alone, so abandoned
or failed orders never consume coupon quota.
"""

from datetime import datetime

import structlog
from protean.utils.globals import current_domain

from checkout.discount.discount import Discount
from checkout.errors import CouponRejected

logger = structlog.get_logger(__name__)


def validate(coupon_code: str, customer_id: str, subtotal: float, now: datetime | None = None) -> Discount:
    """Return the discount for `coupon_code`, or raise CouponRejected with the reason."""
    code = (coupon_code or "").strip().upper()
    discount = current_domain.repository_for(Discount).by_code(code) if code else None
    if discount is None:
        raise CouponRejected(
            coupon_code=code,
            reason=CouponRejected.NOT_FOUND,
            message=f"Coupon {code} does not exist",
        )

    discount.check_applicable(customer_id, subtotal, now=now)
    return discount


def record_usage(discount_id: str, customer_id: str, order_id: str) -> Discount:
    """Count one use of the discount; raises CouponRejected once a cap is reached."""
    repo = current_domain.repository_for(Discount)
    discount = repo.get(discount_id)
    discount.redeem(customer_id, order_id)
    repo.add(discount)

    logger.info(
        "Coupon usage recorded",
        discount_id=str(discount_id),
        coupon_code=discount.coupon_code,
        customer_id=str(customer_id),
        order_id=str(order_id),
        times_used=discount.times_used,
    )
    return discount
