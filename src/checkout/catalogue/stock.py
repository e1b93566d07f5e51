"""Stock guard.

`check_stock` is the optimistic pass made when an order is initiated: it
reads (possibly cached) snapshots and fails fast on the first line that
cannot be supplied. `withdraw_stock` is the binding pass run inside the
settling unit of work: each line is withdrawn through the repository's
conditional decrement, and the first shortage aborts the whole transaction.
"""

from collections.abc import Iterable, Mapping
from typing import Protocol

from protean.utils.globals import current_domain

from checkout.catalogue.book import Book
from checkout.catalogue.reader import BookSnapshot
from checkout.errors import StockConflict


class StockLine(Protocol):
    book_id: str
    quantity: int


def check_stock(lines: Iterable[StockLine], books: Mapping[str, BookSnapshot]) -> None:
    """Raise StockConflict naming the first line whose quantity exceeds stock."""
    for line in lines:
        book = books[str(line.book_id)]
        if line.quantity > book.stock:
            raise StockConflict(
                book_id=book.book_id,
                title=book.title,
                requested=line.quantity,
                available=book.stock,
            )


def withdraw_stock(lines: Iterable[StockLine], order_id: str) -> None:
    repo = current_domain.repository_for(Book)
    for line in lines:
        repo.withdraw(str(line.book_id), int(line.quantity), order_id)
