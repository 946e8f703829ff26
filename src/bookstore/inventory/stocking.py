"""Inventory stocking: command and handler."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from bookstore.domain import bookstore
from bookstore.inventory.inventory import Inventory

logger = structlog.get_logger(__name__)


@bookstore.command(part_of="Inventory")
class StockInventory:
    """Set the on-hand quantity of a book, opening its ledger row if needed."""

    book_id = Identifier(required=True)
    quantity = Integer(required=True)


@bookstore.command_handler(part_of=Inventory)
class StockInventoryHandler:
    @handle(StockInventory)
    def stock_inventory(self, command):
        repo = current_domain.repository_for(Inventory)
        try:
            inventory = repo.get(command.book_id)
            inventory.restock(command.quantity)
        except ObjectNotFoundError:
            inventory = Inventory.stock(book_id=command.book_id, quantity=command.quantity)
            logger.info("Opened inventory ledger", book_id=str(inventory.book_id))
        repo.add(inventory)
        return str(inventory.book_id)
