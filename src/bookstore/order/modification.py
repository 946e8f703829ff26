"""Order modification: add or replace lines and set the shipping address."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.inventory.inventory import Inventory
from bookstore.order.order import Order, ShippingAddress
from bookstore.shared.money import DEFAULT_CURRENCY, Money


@bookstore.command(part_of="Order")
class AddOrderLine:
    """Add a book to a pending order, or replace the line already held for it."""

    order_id = Identifier(required=True)
    book_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Integer(required=True)  # Minor units
    currency = String(max_length=3, default=DEFAULT_CURRENCY)


@bookstore.command(part_of="Order")
class SetShippingAddress:
    order_id = Identifier(required=True)
    postal_code = String(required=True, max_length=7)
    prefecture = String(required=True, max_length=50)
    city = String(required=True, max_length=100)
    street = String(required=True, max_length=200)
    building = String(max_length=200)


@bookstore.command_handler(part_of=Order)
class ModifyOrderHandler:
    @handle(AddOrderLine)
    def add_order_line(self, command):
        # Only books with an inventory ledger row can be ordered
        current_domain.repository_for(Inventory).get(command.book_id)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.add_line(
            book_id=command.book_id,
            quantity=command.quantity,
            unit_price=Money(amount=command.unit_price, currency=command.currency or DEFAULT_CURRENCY),
        )
        repo.add(order)

    @handle(SetShippingAddress)
    def set_shipping_address(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.set_shipping_address(
            ShippingAddress(
                postal_code=command.postal_code,
                prefecture=command.prefecture,
                city=command.city,
                street=command.street,
                building=command.building,
            )
        )
        repo.add(order)
