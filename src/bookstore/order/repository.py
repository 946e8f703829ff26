"""Repository for the Order aggregate."""

from bookstore.domain import bookstore
from bookstore.order.order import Order, OrderStatus


@bookstore.repository(part_of=Order)
class OrderRepository:
    """Order persistence plus the read queries the API exposes.

    ``get`` and ``add`` come from the base repository. Results are returned
    oldest first.
    """

    def _sorted(self, orders) -> list[Order]:
        return sorted(orders, key=lambda order: (order.created_at, str(order.id)))

    def all_orders(self) -> list[Order]:
        return self._sorted(self._dao.query.all().items)

    def by_status(self, status: str | OrderStatus) -> list[Order]:
        status = OrderStatus(status).value
        return self._sorted(self._dao.query.filter(status=status).all().items)

    def by_customer(self, customer_id: str) -> list[Order]:
        return self._sorted(self._dao.query.filter(customer_id=str(customer_id)).all().items)
