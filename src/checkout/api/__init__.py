"""Checkout API package."""

from checkout.api.errors import register_error_handlers
from checkout.api.routes import cart_router, discount_router, order_router, payment_router

__all__ = ["cart_router", "order_router", "payment_router", "discount_router", "register_error_handlers"]
