"""Order cancellation: command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from bookstore.confirmation.coordinator import ConfirmationCoordinator
from bookstore.domain import bookstore
from bookstore.inventory.inventory import Inventory
from bookstore.order.order import Order


@bookstore.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)


@bookstore.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        coordinator = ConfirmationCoordinator(
            current_domain.repository_for(Order),
            current_domain.repository_for(Inventory),
        )
        order = coordinator.cancel(command.order_id)
        return order.status
