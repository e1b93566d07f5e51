"""Checkout bounded context: order intent, payment settlement and stock.

Turns a customer's cart into a priced order, hands online payments off to the
payment gateway, and settles verified payment confirmations. Orders, books,
carts and discounts share this one domain so that a settlement can change all
of them inside a single unit of work.
"""

import structlog
from protean.domain import Domain

checkout = Domain(name="checkout")

logger = structlog.get_logger(__name__)
