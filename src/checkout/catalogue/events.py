"""Domain events for the Book aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Book")
class BookStockWithdrawn:
    """Stock left the shelf for an order (settlement or cash on delivery)."""

    __version__ = 1

    book_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining_stock = Integer(required=True)
    withdrawn_at = DateTime(required=True)


@checkout.event(part_of="Book")
class BookRestocked:
    """Stock was added back to a book."""

    __version__ = 1

    book_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_stock = Integer(required=True)
    reason = String(max_length=255)
    restocked_at = DateTime(required=True)


@checkout.event(part_of="Book")
class BookSoldOut:
    """The last unit of a book was withdrawn."""

    __version__ = 1

    book_id = Identifier(required=True)
    title = String(required=True)
    sold_out_at = DateTime(required=True)
