"""Repository for the Discount aggregate."""

from checkout.discount.discount import Discount
from checkout.domain import checkout


@checkout.repository(part_of=Discount)
class DiscountRepository:
    def by_code(self, coupon_code: str) -> Discount | None:
        return self._dao.query.filter(coupon_code=coupon_code.strip().upper()).all().first
