"""Admin fulfillment transitions: ship, deliver and cancel."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.order import Order


@checkout.command(part_of="Order")
class ShipOrder:
    order_id = Identifier(required=True)


@checkout.command(part_of="Order")
class DeliverOrder:
    order_id = Identifier(required=True)


@checkout.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@checkout.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(ShipOrder)
    def ship_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ship()
        repo.add(order)

    @handle(DeliverOrder)
    def deliver_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.deliver()
        repo.add(order)

    @handle(CancelOrder)
    def cancel_order(self, command):
        # Stock withdrawn for a processing order is not put back here;
        # returns to the shelf go through the catalogue's restock.
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(reason=command.reason)
        repo.add(order)
