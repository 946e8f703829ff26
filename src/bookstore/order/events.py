"""Domain events for the Order aggregate.

Events are immutable facts about committed order changes. They are dispatched
after the unit of work commits and relayed to the configured event publisher.
Line collections and addresses travel as JSON text.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from bookstore.domain import bookstore


@bookstore.event(part_of="Order")
class OrderCreated:
    """A new, empty order was opened for a customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    created_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class OrderLineAdded:
    """A book was added to a pending order, or its line was replaced."""

    __version__ = 1

    order_id = Identifier(required=True)
    book_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Integer(required=True)
    currency = String(max_length=3, required=True)
    replaced = Boolean(default=False)


@bookstore.event(part_of="Order")
class ShippingAddressSet:
    """The shipping address of a pending order was set or replaced."""

    __version__ = 1

    order_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict


@bookstore.event(part_of="Order")
class OrderConfirmed:
    """The order was confirmed and stock was reserved for every line."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of line dicts
    subtotal = Integer(required=True)
    shipping_fee = Integer(required=True)
    total = Integer(required=True)
    currency = String(max_length=3, required=True)
    confirmed_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled.

    ``lines_to_release`` lists the reservations that were given back to the
    inventory ledger; it is empty when the order was still pending.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True, max_length=20)
    lines_to_release = Text(required=True)  # JSON: list of line dicts
    cancelled_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class OrderShipped:
    """The confirmed order left the warehouse."""

    __version__ = 1

    order_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict
    shipped_at = DateTime(required=True)


@bookstore.event(part_of="Order")
class OrderDelivered:
    """The shipped order reached the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)
