"""Shared BDD fixtures and step definitions for checkout."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from checkout.catalogue.book import Book
from checkout.order.order import Order


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def books():
    """Books created by Given steps, keyed by title."""
    return {}


@pytest.fixture()
def error():
    """Container for captured checkout errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a book "{title}" priced {price:g} with {stock:d} in stock'))
def book_in_catalogue(make_book, books, title, price, stock):
    books[title] = make_book(title=title, price=price, stock=stock)


@given(parsers.cfparse('the customer has {quantity:d} of "{title}" in the cart'))
def customer_cart(fill_cart, books, quantity, title):
    fill_cart((books[title], quantity))


@given(parsers.cfparse('a {percent:g} percent coupon "{code}"'))
def percentage_coupon(make_discount, percent, code):
    make_discount(coupon_code=code, discount_type="PERCENTAGE", value=percent)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is "{status}" with payment "{payment_status}"'))
def order_state(placed, status, payment_status):
    order = current_domain.repository_for(Order).get(placed.order_id)
    assert order.status == status
    assert order.payment_status == payment_status


@then(parsers.cfparse("the order total is {amount:g}"))
def order_total(placed, amount):
    order = current_domain.repository_for(Order).get(placed.order_id)
    assert order.pricing.final_amount == amount


@then(parsers.cfparse('"{title}" has {stock:d} in stock'))
def remaining_stock(books, title, stock):
    assert current_domain.repository_for(Book).get(books[title].id).stock == stock


@then(parsers.cfparse('the checkout fails with "{code}"'))
def checkout_failed(error, code):
    assert error["exc"] is not None
    assert error["exc"].code == code
