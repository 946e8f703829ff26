"""Order confirmation: command and handler.

Confirmation reserves stock across several Inventory rows, so the handler
delegates to the ``ConfirmationCoordinator`` instead of touching the Order
alone.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from bookstore.confirmation.coordinator import ConfirmationCoordinator
from bookstore.domain import bookstore
from bookstore.inventory.inventory import Inventory
from bookstore.order.order import Order


@bookstore.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)


@bookstore.command_handler(part_of=Order)
class ConfirmOrderHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        coordinator = ConfirmationCoordinator(
            current_domain.repository_for(Order),
            current_domain.repository_for(Inventory),
        )
        order = coordinator.confirm(command.order_id)
        return order.status
