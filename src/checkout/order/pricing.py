"""Order pricing.

Pure functions over line snapshots and an optional, already validated
discount. Nothing here reads or writes stored state. Amounts are rounded to
two decimal places at each step so every stored price satisfies

    final_amount == max(0, subtotal - discount_amount) + handling_fee + delivery_fee
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from checkout.discount.discount import DiscountType


class PricedLine(Protocol):
    unit_price: float
    quantity: int


class DiscountTerms(Protocol):
    discount_type: str
    value: float


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: float
    discount_amount: float
    handling_fee: float
    delivery_fee: float
    final_amount: float

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "handling_fee": self.handling_fee,
            "delivery_fee": self.delivery_fee,
            "final_amount": self.final_amount,
        }


def subtotal_of(lines: Iterable[PricedLine]) -> float:
    return round(sum(line.unit_price * line.quantity for line in lines), 2)


def discount_amount_for(subtotal: float, discount: DiscountTerms | None) -> float:
    """Amount taken off the subtotal; free-delivery coupons take nothing off it."""
    if discount is None:
        return 0.0
    if discount.discount_type == DiscountType.PERCENTAGE.value:
        return round(subtotal * discount.value / 100, 2)
    if discount.discount_type == DiscountType.FIXED_AMOUNT.value:
        return round(min(discount.value, subtotal), 2)
    return 0.0


def final_amount_for(subtotal: float, discount_amount: float, handling_fee: float, delivery_fee: float) -> float:
    return round(max(0.0, subtotal - discount_amount) + handling_fee + delivery_fee, 2)


def price_order(
    lines: Iterable[PricedLine],
    handling_fee: float,
    base_delivery_fee: float,
    discount: DiscountTerms | None = None,
) -> PriceBreakdown:
    subtotal = subtotal_of(lines)
    discount_amount = discount_amount_for(subtotal, discount)

    delivery_fee = round(base_delivery_fee, 2)
    if discount is not None and discount.discount_type == DiscountType.FREE_DELIVERY.value:
        delivery_fee = 0.0

    handling_fee = round(handling_fee, 2)
    return PriceBreakdown(
        subtotal=subtotal,
        discount_amount=discount_amount,
        handling_fee=handling_fee,
        delivery_fee=delivery_fee,
        final_amount=final_amount_for(subtotal, discount_amount, handling_fee, delivery_fee),
    )
