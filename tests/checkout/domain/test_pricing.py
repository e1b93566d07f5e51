from types import SimpleNamespace

import pytest

from checkout.order.pricing import discount_amount_for, final_amount_for, price_order, subtotal_of


def _line(unit_price, quantity):
    return SimpleNamespace(unit_price=unit_price, quantity=quantity)


def _discount(discount_type, value):
    return SimpleNamespace(discount_type=discount_type, value=value)


class TestSubtotal:
    def test_sums_price_times_quantity(self):
        assert subtotal_of([_line(250.0, 2), _line(99.5, 1)]) == 599.5

    def test_empty_lines(self):
        assert subtotal_of([]) == 0.0


class TestDiscountAmount:
    def test_percentage(self):
        assert discount_amount_for(500.0, _discount("PERCENTAGE", 10)) == 50.0

    def test_percentage_rounds_to_cents(self):
        assert discount_amount_for(99.99, _discount("PERCENTAGE", 15)) == 15.0

    def test_fixed_amount(self):
        assert discount_amount_for(500.0, _discount("FIXED_AMOUNT", 75)) == 75.0

    def test_fixed_amount_is_clamped_to_subtotal(self):
        assert discount_amount_for(40.0, _discount("FIXED_AMOUNT", 100)) == 40.0

    def test_free_delivery_takes_nothing_off_subtotal(self):
        assert discount_amount_for(500.0, _discount("FREE_DELIVERY", 0)) == 0.0

    def test_no_discount(self):
        assert discount_amount_for(500.0, None) == 0.0


class TestPriceOrder:
    def test_ten_percent_coupon_on_five_hundred(self):
        breakdown = price_order(
            [_line(250.0, 2)],
            handling_fee=20.0,
            base_delivery_fee=50.0,
            discount=_discount("PERCENTAGE", 10),
        )
        assert breakdown.subtotal == 500.0
        assert breakdown.discount_amount == 50.0
        assert breakdown.handling_fee == 20.0
        assert breakdown.delivery_fee == 50.0
        assert breakdown.final_amount == 520.0

    def test_free_delivery_zeroes_delivery_fee(self):
        breakdown = price_order(
            [_line(300.0, 1)],
            handling_fee=20.0,
            base_delivery_fee=50.0,
            discount=_discount("FREE_DELIVERY", 0),
        )
        assert breakdown.delivery_fee == 0.0
        assert breakdown.discount_amount == 0.0
        assert breakdown.final_amount == 320.0

    def test_fixed_discount_larger_than_subtotal_leaves_only_fees(self):
        breakdown = price_order(
            [_line(30.0, 1)],
            handling_fee=20.0,
            base_delivery_fee=50.0,
            discount=_discount("FIXED_AMOUNT", 100),
        )
        assert breakdown.discount_amount == 30.0
        assert breakdown.final_amount == 70.0

    def test_without_coupon(self):
        breakdown = price_order([_line(120.0, 3)], handling_fee=20.0, base_delivery_fee=50.0)
        assert breakdown.final_amount == 430.0

    @pytest.mark.parametrize(
        "unit_price,quantity,discount",
        [
            (19.99, 3, ("PERCENTAGE", 12.5)),
            (0.01, 7, ("PERCENTAGE", 33)),
            (1234.56, 2, ("FIXED_AMOUNT", 99.99)),
            (5.0, 1, ("FIXED_AMOUNT", 500)),
            (333.33, 3, ("FREE_DELIVERY", 0)),
            (10.1, 9, None),
        ],
    )
    def test_final_amount_matches_breakdown_to_the_cent(self, unit_price, quantity, discount):
        terms = _discount(*discount) if discount else None
        b = price_order([_line(unit_price, quantity)], handling_fee=20.0, base_delivery_fee=50.0, discount=terms)
        expected = max(0.0, b.subtotal - b.discount_amount) + b.handling_fee + b.delivery_fee
        assert abs(b.final_amount - expected) < 0.005
        assert b.final_amount >= b.handling_fee + b.delivery_fee


def test_final_amount_never_goes_below_fees():
    assert final_amount_for(10.0, 25.0, 20.0, 50.0) == 70.0
