"""Domain events for the Inventory aggregate."""

from protean.fields import DateTime, Identifier, Integer

from bookstore.domain import bookstore


@bookstore.event(part_of="Inventory")
class InventoryStocked:
    """The on-hand quantity of a book was set."""

    __version__ = 1

    book_id = Identifier(required=True)
    quantity_on_hand = Integer(required=True)
    stocked_at = DateTime(required=True)


@bookstore.event(part_of="Inventory")
class InventoryReserved:
    """Copies were taken out of the ledger for a confirmed order line."""

    __version__ = 1

    book_id = Identifier(required=True)
    quantity = Integer(required=True)
    quantity_on_hand = Integer(required=True)
    reserved_at = DateTime(required=True)


@bookstore.event(part_of="Inventory")
class InventoryReleased:
    """Copies were returned to the ledger after a cancellation or rollback."""

    __version__ = 1

    book_id = Identifier(required=True)
    quantity = Integer(required=True)
    quantity_on_hand = Integer(required=True)
    released_at = DateTime(required=True)
