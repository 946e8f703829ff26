"""Error kinds raised by the bookstore domain beyond Protean's own.

``ValidationError`` and ``ObjectNotFoundError`` come straight from
``protean.exceptions``; the classes here carry the extra context the calling
layer needs to report a rejected command.
"""

from protean.exceptions import ExpectedVersionError, InvalidOperationError


class InvalidStateTransition(InvalidOperationError):
    """An order operation is not permitted from the order's current status."""

    def __init__(self, current_status, event):
        self.current_status = current_status
        self.event = event
        super().__init__(f"Cannot {event} an order in {current_status} status")


class InsufficientInventory(InvalidOperationError):
    """A reservation asked for more copies of a book than are on hand."""

    def __init__(self, book_id, requested, available):
        self.book_id = book_id
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient inventory for book {book_id}: requested {requested}, available {available}")


class ConcurrencyConflict(ExpectedVersionError):
    """An aggregate changed between load and save. Retry the command from a fresh load."""


class PersistenceFailure(Exception):
    """The storage layer failed while applying a change. The change was not committed."""
