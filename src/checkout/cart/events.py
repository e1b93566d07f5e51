"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Identifier, Integer

from checkout.domain import checkout


@checkout.event(part_of="Cart")
class CartItemAdded:
    """A book was added to a customer's cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    book_id = Identifier(required=True)
    quantity = Integer(required=True)


@checkout.event(part_of="Cart")
class CartCleared:
    """The cart was emptied because its contents became an order."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    item_count = Integer(required=True)
    cleared_at = DateTime(required=True)
