import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from checkout.cart.cart import Cart
from checkout.catalogue.book import Book
from checkout.discount.discount import Discount
from checkout.errors import CouponRejected, GatewayError, IdempotencyConflict, StockConflict
from checkout.order.initiation import InitiateOrder, request_fingerprint
from checkout.order.order import Order, OrderStatus, PaymentStatus


def _initiate(customer_id="cust-001", payment_method="UPI", coupon_code=None, idempotency_key=None):
    return current_domain.process(
        InitiateOrder(
            customer_id=customer_id,
            payment_method=payment_method,
            coupon_code=coupon_code,
            idempotency_key=idempotency_key,
        ),
        asynchronous=False,
    )


def _all_orders():
    return current_domain.repository_for(Order)._dao.query.all().items


def _book(book):
    return current_domain.repository_for(Book).get(book.id)


def _cart(customer_id="cust-001"):
    return current_domain.repository_for(Cart).for_customer(customer_id)


class TestCashOnDelivery:
    def test_two_units_of_last_two_in_stock(self, make_book, fill_cart):
        book = make_book(price=250.0, stock=2)
        fill_cart((book, 2))

        result = _initiate(payment_method="CASH_ON_DELIVERY")

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.status == OrderStatus.PROCESSING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert result.gateway_request is None
        assert _book(book).stock == 0
        assert _cart().is_empty

    def test_prices_are_frozen_on_the_order(self, make_book, fill_cart):
        book = make_book(price=250.0, stock=5)
        fill_cart((book, 2))

        result = _initiate(payment_method="CASH_ON_DELIVERY")

        updated = _book(book)
        updated.price = 999.0
        current_domain.repository_for(Book).add(updated)

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.items[0].unit_price == 250.0
        assert order.pricing.subtotal == 500.0
        assert order.pricing.final_amount == 570.0


class TestOnlinePayment:
    def test_registers_remote_payment_without_touching_stock_or_cart(self, make_book, fill_cart, gateway):
        book = make_book(price=250.0, stock=2)
        fill_cart((book, 2))

        result = _initiate(payment_method="UPI")

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.gateway_order_ref == result.gateway_request.gateway_order_ref
        assert result.gateway_request.amount == 57000
        assert result.gateway_request.currency == "INR"
        assert result.gateway_request.receipt == str(order.id)
        assert result.gateway_request.key_id == "rzp_test_key"
        assert gateway.calls == [
            {"method": "create_remote_payment", "amount_minor": 57000, "currency": "INR", "receipt": str(order.id)}
        ]
        assert _book(book).stock == 2
        assert not _cart().is_empty

    def test_gateway_failure_leaves_no_order(self, make_book, fill_cart, gateway):
        book = make_book(stock=2)
        fill_cart((book, 1))
        gateway.configure(should_succeed=False, failure_reason="Gateway timed out")

        with pytest.raises(GatewayError):
            _initiate(payment_method="CARD")

        assert _all_orders() == []
        assert _book(book).stock == 2


class TestCoupons:
    def test_ten_percent_coupon(self, make_book, fill_cart, make_discount):
        book = make_book(price=250.0, stock=5)
        fill_cart((book, 2))
        discount = make_discount(coupon_code="WELCOME10", value=10, min_cart_value=400)

        result = _initiate(coupon_code="welcome10")

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.pricing.discount_amount == 50.0
        assert order.pricing.final_amount == 520.0
        assert order.coupon_code == "WELCOME10"
        assert order.applied_discount_id == str(discount.id)

    def test_validation_does_not_consume_quota(self, make_book, fill_cart, make_discount):
        book = make_book(price=250.0, stock=5)
        fill_cart((book, 2))
        discount = make_discount(max_uses=1)

        _initiate(coupon_code="WELCOME10")

        assert current_domain.repository_for(Discount).get(discount.id).times_used == 0

    def test_cash_on_delivery_records_coupon_usage(self, make_book, fill_cart, make_discount):
        book = make_book(price=250.0, stock=5)
        fill_cart((book, 2))
        discount = make_discount(max_uses_per_user=1)

        result = _initiate(payment_method="CASH_ON_DELIVERY", coupon_code="WELCOME10")

        stored = current_domain.repository_for(Discount).get(discount.id)
        assert stored.times_used == 1
        assert stored.uses_by("cust-001") == 1
        assert current_domain.repository_for(Order).get(result.order_id).coupon_code == "WELCOME10"

    def test_cash_on_delivery_respects_per_customer_quota(self, make_book, fill_cart, make_discount):
        book = make_book(price=250.0, stock=5)
        discount = make_discount(max_uses_per_user=1)
        fill_cart((book, 1))
        _initiate(payment_method="CASH_ON_DELIVERY", coupon_code="WELCOME10")
        fill_cart((book, 1))

        with pytest.raises(CouponRejected) as exc:
            _initiate(payment_method="CASH_ON_DELIVERY", coupon_code="WELCOME10")

        assert exc.value.reason == CouponRejected.PER_USER_EXHAUSTED
        assert len(_all_orders()) == 1
        assert _book(book).stock == 4
        assert current_domain.repository_for(Discount).get(discount.id).times_used == 1

    def test_cash_on_delivery_respects_global_quota(self, make_book, fill_cart, make_discount):
        book = make_book(price=250.0, stock=5)
        make_discount(max_uses=1)
        fill_cart((book, 1), owner="cust-a")
        fill_cart((book, 1), owner="cust-b")
        _initiate(customer_id="cust-a", payment_method="CASH_ON_DELIVERY", coupon_code="WELCOME10")

        with pytest.raises(CouponRejected) as exc:
            _initiate(customer_id="cust-b", payment_method="CASH_ON_DELIVERY", coupon_code="WELCOME10")

        assert exc.value.reason == CouponRejected.USAGE_EXHAUSTED

    def test_rejected_coupon_fails_checkout(self, make_book, fill_cart, make_discount):
        book = make_book(price=100.0, stock=5)
        fill_cart((book, 1))
        make_discount(min_cart_value=400)

        with pytest.raises(CouponRejected) as exc:
            _initiate(coupon_code="WELCOME10")

        assert exc.value.reason == CouponRejected.BELOW_MINIMUM
        assert _all_orders() == []

    def test_unknown_coupon(self, make_book, fill_cart):
        book = make_book(stock=5)
        fill_cart((book, 1))

        with pytest.raises(CouponRejected) as exc:
            _initiate(coupon_code="NOPE")
        assert exc.value.reason == CouponRejected.NOT_FOUND

    def test_free_delivery_coupon(self, make_book, fill_cart, make_discount):
        book = make_book(price=300.0, stock=5)
        fill_cart((book, 1))
        make_discount(coupon_code="FREESHIP", discount_type="FREE_DELIVERY", value=0)

        result = _initiate(coupon_code="FREESHIP")

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.pricing.delivery_fee == 0.0
        assert order.pricing.final_amount == 320.0


class TestValidation:
    def test_empty_cart_and_bad_method_are_reported_together(self):
        with pytest.raises(ValidationError) as exc:
            _initiate(payment_method="CHEQUE")

        assert "payment_method" in exc.value.messages
        assert exc.value.messages["cart"] == ["Cart is empty"]

    def test_missing_customer_is_rejected_by_the_command(self):
        with pytest.raises(ValidationError) as exc:
            InitiateOrder(payment_method="UPI")
        assert "customer_id" in exc.value.messages

    def test_insufficient_stock_names_the_book(self, make_book, fill_cart):
        plenty = make_book(title="Plenty", stock=10)
        scarce = make_book(title="Scarce", stock=1)
        fill_cart((plenty, 1), (scarce, 3))

        with pytest.raises(StockConflict) as exc:
            _initiate(payment_method="CASH_ON_DELIVERY")

        assert exc.value.book_id == str(scarce.id)
        assert exc.value.message == "Only 1 of 'Scarce' in stock, 3 requested"
        assert _all_orders() == []
        assert _book(plenty).stock == 10


class TestIdempotency:
    def test_same_key_returns_same_order_with_side_effects_once(self, make_book, fill_cart):
        book = make_book(price=250.0, stock=5)
        fill_cart((book, 2))

        first = _initiate(payment_method="CASH_ON_DELIVERY", idempotency_key="idem-001")
        second = _initiate(payment_method="CASH_ON_DELIVERY", idempotency_key="idem-001")

        assert second.order_id == first.order_id
        assert second.replayed is True
        assert len(_all_orders()) == 1
        assert _book(book).stock == 3

    def test_online_replay_returns_same_gateway_request(self, make_book, fill_cart, gateway):
        book = make_book(stock=5)
        fill_cart((book, 1))

        first = _initiate(idempotency_key="idem-002")
        second = _initiate(idempotency_key="idem-002")

        assert second.gateway_request == first.gateway_request
        assert len(gateway.calls) == 1

    def test_same_key_different_request_conflicts(self, make_book, fill_cart):
        book = make_book(stock=5)
        fill_cart((book, 1))
        _initiate(payment_method="UPI", idempotency_key="idem-003")

        with pytest.raises(IdempotencyConflict):
            _initiate(payment_method="CARD", idempotency_key="idem-003")

    def test_fingerprint_ignores_coupon_case(self):
        assert request_fingerprint("c", "UPI", "welcome10") == request_fingerprint("c", "UPI", "WELCOME10 ")
        assert request_fingerprint("c", "UPI", None) != request_fingerprint("c", "CARD", None)
