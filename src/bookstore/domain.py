"""Bookstore bounded context with Orders and the per-book Inventory ledger.

Handles the order lifecycle (Pending → Confirmed → Shipped → Delivered, or
Cancelled), the inventory ledger for each book, and the confirmation
protocol that reserves stock for every line of an order in one unit of work.
"""

import structlog
from protean.domain import Domain

bookstore = Domain(name="bookstore")

logger = structlog.get_logger(__name__)
