"""Repository for the Cart aggregate."""

from checkout.cart.cart import Cart
from checkout.domain import checkout


@checkout.repository(part_of=Cart)
class CartRepository:
    def for_customer(self, customer_id: str) -> Cart | None:
        """Return the customer's cart, or None when they never had one."""
        return self._dao.query.filter(customer_id=str(customer_id)).all().first

    def clear_for(self, customer_id: str, order_id: str) -> None:
        """Clear the customer's cart; a missing or already empty cart is left alone."""
        cart = self.for_customer(customer_id)
        if cart is None or cart.is_empty:
            return
        cart.clear(order_id)
        self.add(cart)
