from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from checkout.discount import ledger
from checkout.discount.discount import Discount
from checkout.discount.management import CreateDiscount, DeactivateDiscount
from checkout.errors import CouponRejected


def _create(**kwargs):
    payload = {"coupon_code": "welcome10", "discount_type": "PERCENTAGE", "value": 10.0}
    payload.update(kwargs)
    return current_domain.process(CreateDiscount(**payload), asynchronous=False)


class TestCreateDiscount:
    def test_creates_with_normalized_code(self):
        discount_id = _create()

        discount = current_domain.repository_for(Discount).get(discount_id)
        assert discount.coupon_code == "WELCOME10"
        assert discount.is_active is True
        assert discount.times_used == 0

    def test_duplicate_code_is_rejected(self):
        _create()

        with pytest.raises(ValidationError) as exc:
            _create(coupon_code="WELCOME10")

        assert "coupon_code" in exc.value.messages

    def test_percentage_over_hundred_is_rejected(self):
        with pytest.raises(ValidationError):
            _create(value=150.0)

    def test_window_must_be_ordered(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            _create(start_date=now, end_date=now - timedelta(days=1))


class TestDeactivateDiscount:
    def test_deactivated_coupon_is_no_longer_applicable(self):
        discount_id = _create()

        current_domain.process(DeactivateDiscount(discount_id=discount_id), asynchronous=False)

        with pytest.raises(CouponRejected) as exc:
            ledger.validate("WELCOME10", "cust-001", 500.0)
        assert exc.value.reason == CouponRejected.INACTIVE

    def test_deactivating_twice_fails(self):
        discount_id = _create()
        current_domain.process(DeactivateDiscount(discount_id=discount_id), asynchronous=False)

        with pytest.raises(ValidationError):
            current_domain.process(DeactivateDiscount(discount_id=discount_id), asynchronous=False)


class TestLedger:
    def test_unknown_code(self):
        with pytest.raises(CouponRejected) as exc:
            ledger.validate("NOPE", "cust-001", 500.0)
        assert exc.value.reason == CouponRejected.NOT_FOUND

    def test_validate_does_not_consume_quota(self, make_discount):
        discount = make_discount(max_uses=1)

        ledger.validate("welcome10", "cust-001", 500.0)
        ledger.validate("WELCOME10", "cust-002", 500.0)

        assert current_domain.repository_for(Discount).get(discount.id).times_used == 0

    def test_record_usage_counts_per_customer(self, make_discount):
        discount = make_discount(max_uses_per_user=2)

        ledger.record_usage(str(discount.id), "cust-001", "ord-1")
        ledger.record_usage(str(discount.id), "cust-001", "ord-2")

        stored = current_domain.repository_for(Discount).get(discount.id)
        assert stored.times_used == 2
        assert stored.uses_by("cust-001") == 2
        with pytest.raises(CouponRejected):
            ledger.record_usage(str(discount.id), "cust-001", "ord-3")
