"""Order fulfillment: shipping and delivery."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.order.order import Order


@bookstore.command(part_of="Order")
class ShipOrder:
    order_id = Identifier(required=True)


@bookstore.command(part_of="Order")
class DeliverOrder:
    order_id = Identifier(required=True)


@bookstore.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(ShipOrder)
    def ship_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ship()
        repo.add(order)
        return order.status

    @handle(DeliverOrder)
    def deliver_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.deliver()
        repo.add(order)
        return order.status
