"""Order creation: command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.order.order import Order


@bookstore.command(part_of="Order")
class CreateOrder:
    customer_id = Identifier()  # Optional; a fresh id is generated when omitted


@bookstore.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        order = Order.create(customer_id=command.customer_id)
        current_domain.repository_for(Order).add(order)
        return str(order.id)
