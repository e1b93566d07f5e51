"""Cart aggregate: the per-customer list of books waiting to be ordered.

Checkout reads a cart once when an order is initiated and clears it once the
order's contents are committed (immediately for cash on delivery, at
settlement for online payments).
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from checkout.cart.events import CartCleared, CartItemAdded
from checkout.domain import checkout


@checkout.entity(part_of="Cart")
class CartLine:
    book_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@checkout.aggregate
class Cart:
    customer_id = Identifier(required=True)
    lines = HasMany(CartLine)
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        return cls(customer_id=customer_id, updated_at=datetime.now(UTC))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def add_item(self, book_id, quantity):
        """Add a book to the cart, or raise the quantity of an existing line."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = next((line for line in self.lines if str(line.book_id) == str(book_id)), None)
        if existing:
            existing.quantity += quantity
        else:
            self.add_lines(CartLine(book_id=book_id, quantity=quantity))

        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                book_id=str(book_id),
                quantity=quantity,
            )
        )

    def clear(self, order_id):
        """Empty the cart after its contents were committed to `order_id`."""
        item_count = len(self.lines)
        for line in list(self.lines):
            self.remove_lines(line)

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                customer_id=str(self.customer_id),
                order_id=str(order_id),
                item_count=item_count,
                cleared_at=now,
            )
        )
