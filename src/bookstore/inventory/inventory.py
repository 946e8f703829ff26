"""Inventory aggregate: one row per book, holding the sellable on-hand quantity.

The on-hand quantity never goes negative. Reservations are all-or-nothing per
book: a request for more copies than are on hand fails without changing the
row.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer

from bookstore.domain import bookstore
from bookstore.exceptions import InsufficientInventory
from bookstore.inventory.events import InventoryReleased, InventoryReserved, InventoryStocked


def _require_quantity(quantity, allow_zero=False):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError({"quantity": ["Quantity must be an integer"]})
    if quantity < 0 or (quantity == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ValidationError({"quantity": [f"Quantity must be {qualifier}"]})


@bookstore.aggregate
class Inventory:
    book_id = Identifier(identifier=True)
    quantity_on_hand = Integer(default=0, min_value=0)
    updated_at = DateTime()

    @classmethod
    def stock(cls, book_id, quantity):
        """Open a ledger row for a book with ``quantity`` copies on hand."""
        _require_quantity(quantity, allow_zero=True)
        now = datetime.now(UTC)
        inventory = cls(book_id=book_id, quantity_on_hand=quantity, updated_at=now)
        inventory.raise_(
            InventoryStocked(
                book_id=str(inventory.book_id),
                quantity_on_hand=quantity,
                stocked_at=now,
            )
        )
        return inventory

    def restock(self, quantity):
        """Replace the on-hand quantity with a fresh stock count."""
        _require_quantity(quantity, allow_zero=True)
        now = datetime.now(UTC)
        self.quantity_on_hand = quantity
        self.updated_at = now
        self.raise_(
            InventoryStocked(
                book_id=str(self.book_id),
                quantity_on_hand=quantity,
                stocked_at=now,
            )
        )

    def has_available_stock(self, quantity):
        return self.quantity_on_hand >= quantity

    def reserve(self, quantity):
        """Take ``quantity`` copies off the shelf and return what is left."""
        _require_quantity(quantity)
        if not self.has_available_stock(quantity):
            raise InsufficientInventory(str(self.book_id), quantity, self.quantity_on_hand)

        now = datetime.now(UTC)
        self.quantity_on_hand -= quantity
        self.updated_at = now
        self.raise_(
            InventoryReserved(
                book_id=str(self.book_id),
                quantity=quantity,
                quantity_on_hand=self.quantity_on_hand,
                reserved_at=now,
            )
        )
        return self.quantity_on_hand

    def release(self, quantity):
        """Put ``quantity`` copies back on the shelf and return the new total."""
        _require_quantity(quantity)
        now = datetime.now(UTC)
        self.quantity_on_hand += quantity
        self.updated_at = now
        self.raise_(
            InventoryReleased(
                book_id=str(self.book_id),
                quantity=quantity,
                quantity_on_hand=self.quantity_on_hand,
                released_at=now,
            )
        )
        return self.quantity_on_hand
