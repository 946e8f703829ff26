"""Repository for the Inventory aggregate."""

from bookstore.domain import bookstore
from bookstore.inventory.inventory import Inventory


@bookstore.repository(part_of=Inventory)
class InventoryRepository:
    """Inventory persistence plus stock queries. Results are sorted by book id."""

    def _sorted(self, inventories) -> list[Inventory]:
        return sorted(inventories, key=lambda inventory: str(inventory.book_id))

    def all_inventories(self) -> list[Inventory]:
        return self._sorted(self._dao.query.all().items)

    def low_stock(self, max_quantity: int) -> list[Inventory]:
        """Inventories with at most ``max_quantity`` copies on hand."""
        return self._sorted(self._dao.query.filter(quantity_on_hand__lte=max_quantity).all().items)
