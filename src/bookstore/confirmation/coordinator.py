"""Confirmation coordinator: the only place where Orders and Inventory meet.

Confirming an order reserves stock for every line and flips the order to
CONFIRMED in one unit of work; cancelling a confirmed order gives the stock
back. Either every touched row is committed or none is.

Each confirmation or cancellation holds a lock per book, taken in ascending
``book_id`` order, from the moment it loads the inventory rows until its unit
of work has committed. Two commands that share a book therefore run one after
the other, and the second one sees the first one's stock. The locks are
process-local; across processes the aggregate version check still rejects a
stale save with ``ConcurrencyConflict``.
"""

import threading
from contextlib import contextmanager

import structlog
from protean import UnitOfWork
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from sqlalchemy.exc import SQLAlchemyError

from bookstore.exceptions import ConcurrencyConflict, InsufficientInventory, PersistenceFailure

logger = structlog.get_logger(__name__)


def _by_book_id(lines):
    return sorted(lines, key=lambda line: str(line.book_id))


class BookLocks:
    """One lock per book id, always acquired in ascending book id order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, book_id: str) -> threading.Lock:
        with self._lock:
            return self._locks.setdefault(book_id, threading.Lock())

    @contextmanager
    def hold(self, book_ids):
        acquired = []
        try:
            for book_id in sorted({str(book_id) for book_id in book_ids}):
                lock = self._lock_for(book_id)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


book_locks = BookLocks()


class ConfirmationCoordinator:
    def __init__(self, order_repository, inventory_repository, unit_of_work=UnitOfWork, locks=book_locks):
        self.orders = order_repository
        self.inventories = inventory_repository
        self.unit_of_work = unit_of_work
        self.locks = locks

    @staticmethod
    def _rollback(uow):
        if uow.in_progress:
            uow.rollback()

    def _book_ids(self, order_id):
        """Read which books an order touches, without keeping anything."""
        uow = self.unit_of_work()
        uow.start()
        try:
            order = self.orders.get(order_id)
            return sorted({str(line.book_id) for line in order.lines})
        finally:
            self._rollback(uow)

    @contextmanager
    def _transaction(self, order_id):
        uow = self.unit_of_work()
        uow.start()
        try:
            yield
            uow.commit()
        except ConcurrencyConflict:
            self._rollback(uow)
            raise
        except ExpectedVersionError as exc:
            self._rollback(uow)
            logger.warning("Concurrent modification detected", order_id=str(order_id), error=str(exc))
            raise ConcurrencyConflict(str(exc)) from exc
        except SQLAlchemyError as exc:
            self._rollback(uow)
            logger.error("Storage failure while saving order", order_id=str(order_id), error=str(exc))
            raise PersistenceFailure(str(exc)) from exc
        except Exception:
            self._rollback(uow)
            raise

    @staticmethod
    def _assert_same_books(order, book_ids):
        # Lines changed between the first read and taking the locks
        if sorted({str(line.book_id) for line in order.lines}) != book_ids:
            raise ConcurrencyConflict(f"Lines of order {order.id} changed during confirmation")

    def confirm(self, order_id):
        """Reserve stock for every line of a pending order and confirm it.

        Raises ``InsufficientInventory`` naming the first book (in book id
        order) that is short, and ``ObjectNotFoundError`` if a line's book has
        no inventory row. In both cases no inventory row changes.
        """
        book_ids = self._book_ids(order_id)
        with self.locks.hold(book_ids), self._transaction(order_id):
            order = self.orders.get(order_id)
            self._assert_same_books(order, book_ids)
            order.ensure_confirmable()

            reserved = []
            try:
                for line in _by_book_id(order.lines):
                    inventory = self.inventories.get(line.book_id)
                    inventory.reserve(line.quantity)
                    reserved.append((inventory, line.quantity))
            except (InsufficientInventory, ObjectNotFoundError) as exc:
                for inventory, quantity in reversed(reserved):
                    inventory.release(quantity)
                logger.warning(
                    "Order confirmation rejected",
                    order_id=str(order.id),
                    rolled_back_lines=len(reserved),
                    error=str(exc),
                )
                raise

            order.confirm()
            for inventory, _ in reserved:
                self.inventories.add(inventory)
            self.orders.add(order)

        logger.info(
            "Order confirmed",
            order_id=str(order.id),
            lines=len(reserved),
            total=order.total.amount,
            currency=order.total.currency,
        )
        return order

    def cancel(self, order_id):
        """Cancel an order, releasing its reservations if it was confirmed."""
        book_ids = self._book_ids(order_id)
        with self.locks.hold(book_ids), self._transaction(order_id):
            order = self.orders.get(order_id)
            self._assert_same_books(order, book_ids)
            to_release = order.cancel()

            released = []
            for line in _by_book_id(to_release):
                inventory = self.inventories.get(line.book_id)
                inventory.release(line.quantity)
                released.append(inventory)

            for inventory in released:
                self.inventories.add(inventory)
            self.orders.add(order)

        logger.info("Order cancelled", order_id=str(order.id), released_lines=len(released))
        return order
