"""Cart management: command and handler for filling a customer's cart."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.catalogue.book import Book
from checkout.domain import checkout


@checkout.command(part_of="Cart")
class AddCartItem:
    customer_id = Identifier(required=True)
    book_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@checkout.command_handler(part_of=Cart)
class CartCommandHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        # Fails with ObjectNotFoundError for books the catalogue does not know.
        current_domain.repository_for(Book).get(command.book_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.for_customer(command.customer_id)
        if cart is None:
            cart = Cart.create(customer_id=command.customer_id)

        cart.add_item(command.book_id, command.quantity or 1)
        repo.add(cart)
        return str(cart.id)
