"""Repository for the Book aggregate."""

import structlog

from checkout.catalogue.book import Book
from checkout.catalogue.cache import get_cache
from checkout.domain import checkout

logger = structlog.get_logger(__name__)


@checkout.repository(part_of=Book)
class BookRepository:
    def withdraw(self, book_id: str, quantity: int, order_id: str) -> Book:
        """Conditionally take `quantity` units of a book off the shelf.

        The aggregate refuses to go below zero, and the save is checked
        against the version that was read, so a concurrent writer that got
        there first makes this call fail instead of being overwritten.
        """
        book = self.get(book_id)
        book.withdraw_stock(quantity, order_id)
        self.add(book)

        get_cache().invalidate("book", str(book_id))
        logger.info(
            "Stock withdrawn",
            book_id=str(book_id),
            order_id=str(order_id),
            quantity=quantity,
            remaining_stock=book.stock,
        )
        return book

    def find_many(self, book_ids: list[str]) -> list[Book]:
        wanted = sorted({str(book_id) for book_id in book_ids})
        if not wanted:
            return []
        # `limit(None)` must come last: cloning a queryset restores the default page size.
        return self._dao.query.filter(id__in=wanted).limit(None).all().items
