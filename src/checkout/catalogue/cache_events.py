"""Drops cached book snapshots once a stock change has committed.

The repository already invalidates on write, but a read inside the same
unit of work can re-cache the pre-commit stock. Handling the committed
events clears whatever was cached in between.
"""

import structlog
from protean.utils.mixins import handle

from checkout.catalogue.book import Book
from checkout.catalogue.cache import get_cache
from checkout.catalogue.events import BookRestocked, BookStockWithdrawn
from checkout.domain import checkout

logger = structlog.get_logger(__name__)


@checkout.event_handler(part_of=Book)
class BookCacheEventHandler:
    @handle(BookStockWithdrawn)
    def on_stock_withdrawn(self, event: BookStockWithdrawn) -> None:
        self._drop(event.book_id)

    @handle(BookRestocked)
    def on_restocked(self, event: BookRestocked) -> None:
        self._drop(event.book_id)

    def _drop(self, book_id) -> None:
        removed = get_cache().invalidate("book", str(book_id))
        if removed:
            logger.debug("Dropped cached book snapshot", book_id=str(book_id))
