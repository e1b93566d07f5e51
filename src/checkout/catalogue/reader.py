"""Read-through access to book prices and stock for checkout."""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from checkout.catalogue.book import Book
from checkout.catalogue.cache import CacheKey, get_cache


@dataclass(frozen=True)
class BookSnapshot:
    book_id: str
    title: str
    price: float
    stock: int
    seller_id: str | None = None

    @classmethod
    def of(cls, book: Book) -> "BookSnapshot":
        return cls(
            book_id=str(book.id),
            title=book.title,
            price=float(book.price),
            stock=int(book.stock or 0),
            seller_id=str(book.seller_id) if book.seller_id else None,
        )


def load_books(book_ids: list[str]) -> dict[str, BookSnapshot]:
    """Return snapshots for the requested books, keyed by book id.

    Cached snapshots are served first; misses are read from the repository in
    one query and cached. Unknown ids are absent from the result.
    """
    cache = get_cache()
    snapshots: dict[str, BookSnapshot] = {}
    misses = []
    for book_id in dict.fromkeys(str(b) for b in book_ids):
        cached = cache.get(CacheKey("book", book_id))
        if cached is None:
            misses.append(book_id)
        else:
            snapshots[book_id] = cached

    if misses:
        for book in current_domain.repository_for(Book).find_many(misses):
            snapshot = BookSnapshot.of(book)
            cache.set(CacheKey("book", snapshot.book_id), snapshot)
            snapshots[snapshot.book_id] = snapshot

    return snapshots
