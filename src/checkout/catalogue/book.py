"""Book aggregate: the catalogue entry whose stock checkout consumes.

Catalogue management (titles, categories, images) lives elsewhere; checkout
only reads a book's price and seller and withdraws from its stock. Stock is a
contested counter: cash-on-delivery checkouts and payment settlements both
draw on it, and it must never go negative.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.catalogue.events import BookRestocked, BookSoldOut, BookStockWithdrawn
from checkout.domain import checkout
from checkout.errors import StockConflict


@checkout.aggregate
class Book:
    title = String(required=True, max_length=255)
    author = String(max_length=255)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    seller_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, title, price, stock=0, author=None, seller_id=None, book_id=None):
        now = datetime.now(UTC)
        kwargs = {}
        if book_id is not None:
            kwargs["id"] = book_id
        return cls(
            title=title,
            author=author,
            price=price,
            stock=stock,
            seller_id=seller_id,
            created_at=now,
            updated_at=now,
            **kwargs,
        )

    def can_supply(self, quantity: int) -> bool:
        return quantity <= (self.stock or 0)

    def withdraw_stock(self, quantity: int, order_id: str) -> None:
        """Take `quantity` units off the shelf, refusing to go below zero."""
        available = self.stock or 0
        if not self.can_supply(quantity):
            raise StockConflict(
                book_id=str(self.id),
                title=self.title,
                requested=quantity,
                available=available,
            )

        now = datetime.now(UTC)
        self.stock = available - quantity
        self.updated_at = now

        self.raise_(
            BookStockWithdrawn(
                book_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                remaining_stock=self.stock,
                withdrawn_at=now,
            )
        )
        if self.stock == 0:
            self.raise_(
                BookSoldOut(
                    book_id=str(self.id),
                    title=self.title,
                    sold_out_at=now,
                )
            )

    def restock(self, quantity: int, reason: str | None = None) -> None:
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        now = datetime.now(UTC)
        self.stock = (self.stock or 0) + quantity
        self.updated_at = now

        self.raise_(
            BookRestocked(
                book_id=str(self.id),
                quantity=quantity,
                new_stock=self.stock,
                reason=reason,
                restocked_at=now,
            )
        )
