import pytest
from protean.integrations.pytest import DomainFixture

from checkout.catalogue.book import Book
from checkout.catalogue.cache import reset_cache
from checkout.cart.cart import Cart
from checkout.config import CheckoutSettings, reset_settings, set_settings
from checkout.discount.discount import Discount
from checkout.notifications import reset_notifier, set_notifier
from checkout.notifications.fake_adapter import FakeNotifier
from checkout.payments.gateway import reset_gateway, set_gateway
from checkout.payments.gateway.fake_adapter import FakeGateway

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def settings():
    current = CheckoutSettings(
        handling_fee=20.0,
        base_delivery_fee=50.0,
        currency="INR",
        gateway="fake",
        webhook_secret=WEBHOOK_SECRET,
        abandoned_order_hours=24,
    )
    set_settings(current)
    yield current
    reset_settings()


@pytest.fixture(autouse=True)
def gateway():
    fake = FakeGateway(key_id="rzp_test_key")
    set_gateway(fake)
    yield fake
    reset_gateway()


@pytest.fixture(autouse=True)
def notifier():
    fake = FakeNotifier()
    set_notifier(fake)
    yield fake
    reset_notifier()


@pytest.fixture(autouse=True)
def run_around_tests():
    """Cleanup data and caches after every test."""
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()
    reset_cache()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def make_book():
    from protean import current_domain

    def _make(title="Clean Code", price=250.0, stock=10, seller_id="seller-001"):
        book = Book.create(title=title, price=price, stock=stock, seller_id=seller_id)
        current_domain.repository_for(Book).add(book)
        return book

    return _make


@pytest.fixture()
def fill_cart(customer_id):
    from protean import current_domain

    def _fill(*lines, owner=None):
        """lines: (book, quantity) pairs."""
        repo = current_domain.repository_for(Cart)
        cart = repo.for_customer(owner or customer_id) or Cart.create(customer_id=owner or customer_id)
        for book, quantity in lines:
            cart.add_item(str(book.id), quantity)
        repo.add(cart)
        return cart

    return _fill


@pytest.fixture()
def make_discount():
    from protean import current_domain

    def _make(coupon_code="WELCOME10", discount_type="PERCENTAGE", value=10.0, **kwargs):
        discount = Discount.create(coupon_code=coupon_code, discount_type=discount_type, value=value, **kwargs)
        current_domain.repository_for(Discount).add(discount)
        return discount

    return _make
