"""Discount aggregate: a coupon definition and its usage counters.

Usage counters are contested: concurrent settlements of orders carrying the
same coupon all try to increment them. `redeem` refuses to cross either cap
and the aggregate re-checks both caps after every change.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String

from checkout.discount.events import CouponRedeemed, DiscountCreated, DiscountDeactivated
from checkout.domain import checkout
from checkout.errors import CouponRejected


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    FREE_DELIVERY = "FREE_DELIVERY"


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


@checkout.entity(part_of="Discount")
class CouponUsage:
    customer_id = Identifier(required=True)
    count = Integer(default=0, min_value=0)


@checkout.aggregate
class Discount:
    coupon_code = String(required=True, max_length=50)
    description = String(max_length=500)
    discount_type = String(required=True, choices=DiscountType)
    value = Float(required=True, min_value=0.0)
    min_cart_value = Float(default=0.0, min_value=0.0)
    max_uses = Integer(min_value=0)  # None: unlimited
    max_uses_per_user = Integer(min_value=0)  # None: unlimited
    times_used = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    start_date = DateTime()
    end_date = DateTime()
    usages = HasMany(CouponUsage)
    created_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percentage discounts cannot exceed 100"]})

    @invariant.post
    def usage_must_stay_within_caps(self):
        if self.max_uses is not None and (self.times_used or 0) > self.max_uses:
            raise ValidationError({"times_used": ["Coupon usage cannot exceed max_uses"]})
        if self.max_uses_per_user is not None:
            for usage in self.usages or []:
                if (usage.count or 0) > self.max_uses_per_user:
                    raise ValidationError({"usages": ["Per-customer usage cannot exceed max_uses_per_user"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.start_date and self.end_date and _naive_utc(self.start_date) > _naive_utc(self.end_date):
            raise ValidationError({"end_date": ["End date must be after start date"]})

    @classmethod
    def create(
        cls,
        coupon_code,
        discount_type,
        value,
        description=None,
        min_cart_value=0.0,
        max_uses=None,
        max_uses_per_user=None,
        start_date=None,
        end_date=None,
    ):
        now = datetime.now(UTC)
        discount = cls(
            coupon_code=coupon_code.strip().upper(),
            description=description,
            discount_type=discount_type,
            value=value,
            min_cart_value=min_cart_value or 0.0,
            max_uses=max_uses,
            max_uses_per_user=max_uses_per_user,
            times_used=0,
            is_active=True,
            start_date=start_date,
            end_date=end_date,
            created_at=now,
        )
        discount.raise_(
            DiscountCreated(
                discount_id=str(discount.id),
                coupon_code=discount.coupon_code,
                discount_type=discount.discount_type,
                value=discount.value,
                created_at=now,
            )
        )
        return discount

    def uses_by(self, customer_id) -> int:
        usage = self._usage_for(customer_id)
        return usage.count if usage else 0

    def _usage_for(self, customer_id):
        return next((u for u in self.usages or [] if str(u.customer_id) == str(customer_id)), None)

    def _reject(self, reason, message):
        raise CouponRejected(coupon_code=self.coupon_code, reason=reason, message=message)

    def _check_quota(self, customer_id):
        if self.max_uses is not None and (self.times_used or 0) >= self.max_uses:
            self._reject(CouponRejected.USAGE_EXHAUSTED, f"Coupon {self.coupon_code} has reached its usage limit")
        if self.max_uses_per_user is not None and self.uses_by(customer_id) >= self.max_uses_per_user:
            self._reject(
                CouponRejected.PER_USER_EXHAUSTED,
                f"You have already used coupon {self.coupon_code} the maximum number of times",
            )

    def check_applicable(self, customer_id, subtotal: float, now: datetime | None = None) -> None:
        """Raise CouponRejected unless the coupon applies to this customer and subtotal."""
        now = _naive_utc(now or datetime.now(UTC))

        if not self.is_active:
            self._reject(CouponRejected.INACTIVE, f"Coupon {self.coupon_code} is no longer active")
        if self.start_date and now < _naive_utc(self.start_date):
            self._reject(CouponRejected.NOT_YET_ACTIVE, f"Coupon {self.coupon_code} is not active yet")
        if self.end_date and now > _naive_utc(self.end_date):
            self._reject(CouponRejected.EXPIRED, f"Coupon {self.coupon_code} has expired")
        if subtotal < (self.min_cart_value or 0.0):
            self._reject(
                CouponRejected.BELOW_MINIMUM,
                f"Coupon {self.coupon_code} requires a cart value of at least {self.min_cart_value:.2f}",
            )
        self._check_quota(customer_id)

    def redeem(self, customer_id, order_id) -> None:
        """Count one use of the coupon by `customer_id` for a settled order."""
        self._check_quota(customer_id)

        with atomic_change(self):
            usage = self._usage_for(customer_id)
            if usage is None:
                self.add_usages(CouponUsage(customer_id=customer_id, count=1))
                customer_uses = 1
            else:
                usage.count = (usage.count or 0) + 1
                customer_uses = usage.count
            self.times_used = (self.times_used or 0) + 1

        self.raise_(
            CouponRedeemed(
                discount_id=str(self.id),
                coupon_code=self.coupon_code,
                customer_id=str(customer_id),
                order_id=str(order_id),
                times_used=self.times_used,
                customer_uses=customer_uses,
                redeemed_at=datetime.now(UTC),
            )
        )

    def deactivate(self) -> None:
        if not self.is_active:
            raise ValidationError({"is_active": ["Coupon is already inactive"]})

        self.is_active = False
        self.raise_(
            DiscountDeactivated(
                discount_id=str(self.id),
                coupon_code=self.coupon_code,
                deactivated_at=datetime.now(UTC),
            )
        )
