"""Application tests for confirming and cancelling orders against the inventory ledger."""

import threading

import pytest
from bookstore.domain import bookstore
from bookstore.exceptions import InsufficientInventory, InvalidStateTransition
from bookstore.inventory.inventory import Inventory
from bookstore.inventory.stocking import StockInventory
from bookstore.order.cancellation import CancelOrder
from bookstore.order.confirmation import ConfirmOrder
from bookstore.order.creation import CreateOrder
from bookstore.order.modification import AddOrderLine, SetShippingAddress
from bookstore.order.order import Order, OrderStatus
from protean import current_domain
from protean.exceptions import ValidationError

_ADDRESS = {
    "postal_code": "1000001",
    "prefecture": "Tokyo",
    "city": "Chiyoda-ku",
    "street": "1-1 Chiyoda",
}


def _stock(book_id, quantity):
    current_domain.process(StockInventory(book_id=book_id, quantity=quantity), asynchronous=False)


def _place_order(lines, with_address=True):
    order_id = current_domain.process(CreateOrder(customer_id="cust-001"), asynchronous=False)
    for book_id, quantity, unit_price in lines:
        current_domain.process(
            AddOrderLine(order_id=order_id, book_id=book_id, quantity=quantity, unit_price=unit_price),
            asynchronous=False,
        )
    if with_address:
        current_domain.process(SetShippingAddress(order_id=order_id, **_ADDRESS), asynchronous=False)
    return order_id


def _confirm(order_id):
    return current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)


def _cancel(order_id):
    return current_domain.process(CancelOrder(order_id=order_id), asynchronous=False)


def _on_hand(book_id):
    return current_domain.repository_for(Inventory).get(book_id).quantity_on_hand


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestConfirmOrder:
    def test_confirm_reserves_stock_for_every_line(self):
        _stock("book-a", 5)
        _stock("book-b", 4)
        order_id = _place_order([("book-a", 3, 1000), ("book-b", 2, 1000)])

        assert _confirm(order_id) == OrderStatus.CONFIRMED.value
        assert _order(order_id).status == OrderStatus.CONFIRMED.value
        assert _on_hand("book-a") == 2
        assert _on_hand("book-b") == 2

    def test_round_trip_total(self):
        _stock("book-a", 5)
        order_id = _place_order([("book-a", 2, 1500)])
        _confirm(order_id)

        order = _order(order_id)
        assert order.total.amount == 3500
        assert _on_hand("book-a") == 3

    def test_shortage_on_one_book_rolls_back_every_reservation(self):
        _stock("book-a", 5)
        _stock("book-b", 2)
        order_id = _place_order([("book-a", 3, 1000), ("book-b", 3, 1000)])

        with pytest.raises(InsufficientInventory) as exc:
            _confirm(order_id)

        assert exc.value.book_id == "book-b"
        assert exc.value.requested == 3
        assert exc.value.available == 2
        assert _on_hand("book-a") == 5
        assert _on_hand("book-b") == 2
        assert _order(order_id).status == OrderStatus.PENDING.value

    def test_first_short_book_in_book_id_order_is_reported(self):
        _stock("book-a", 0)
        _stock("book-b", 0)
        order_id = _place_order([("book-b", 1, 1000), ("book-a", 1, 1000)])

        with pytest.raises(InsufficientInventory) as exc:
            _confirm(order_id)
        assert exc.value.book_id == "book-a"

    def test_last_copy_goes_to_the_first_confirmation(self):
        _stock("book-a", 1)
        first = _place_order([("book-a", 1, 1000)])
        second = _place_order([("book-a", 1, 1000)])

        _confirm(first)
        with pytest.raises(InsufficientInventory):
            _confirm(second)

        assert _on_hand("book-a") == 0
        assert _order(first).status == OrderStatus.CONFIRMED.value
        assert _order(second).status == OrderStatus.PENDING.value

    def test_order_without_lines_rejected(self):
        order_id = _place_order([])
        with pytest.raises(ValidationError):
            _confirm(order_id)

    def test_order_without_address_rejected_before_touching_stock(self):
        _stock("book-a", 5)
        order_id = _place_order([("book-a", 2, 1000)], with_address=False)
        with pytest.raises(ValidationError):
            _confirm(order_id)
        assert _on_hand("book-a") == 5

    def test_confirming_twice_rejected(self):
        _stock("book-a", 5)
        order_id = _place_order([("book-a", 2, 1000)])
        _confirm(order_id)
        with pytest.raises(InvalidStateTransition):
            _confirm(order_id)
        assert _on_hand("book-a") == 3


class TestCancelOrder:
    def test_cancel_confirmed_order_restores_stock(self):
        _stock("book-a", 5)
        _stock("book-b", 2)
        order_id = _place_order([("book-a", 3, 1000), ("book-b", 2, 1000)])
        _confirm(order_id)
        assert _on_hand("book-a") == 2
        assert _on_hand("book-b") == 0

        assert _cancel(order_id) == OrderStatus.CANCELLED.value
        assert _on_hand("book-a") == 5
        assert _on_hand("book-b") == 2

    def test_cancel_pending_order_leaves_stock_alone(self):
        _stock("book-a", 5)
        order_id = _place_order([("book-a", 3, 1000)])
        _cancel(order_id)
        assert _order(order_id).status == OrderStatus.CANCELLED.value
        assert _on_hand("book-a") == 5

    def test_cancelled_order_cannot_be_cancelled_again(self):
        order_id = _place_order([])
        _cancel(order_id)
        with pytest.raises(InvalidStateTransition):
            _cancel(order_id)


class TestOverlappingConfirmations:
    def _confirm_together(self, order_ids):
        barrier = threading.Barrier(len(order_ids))
        outcomes = {}

        def confirm(order_id):
            with bookstore.domain_context():
                barrier.wait()
                try:
                    _confirm(order_id)
                    outcomes[order_id] = "ok"
                except Exception as exc:
                    outcomes[order_id] = exc.__class__.__name__

        threads = [threading.Thread(target=confirm, args=(order_id,)) for order_id in order_ids]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        return outcomes

    @pytest.mark.parametrize("attempt", range(5))
    def test_last_copy_goes_to_exactly_one_of_two_overlapping_confirmations(self, attempt):
        _stock("book-a", 1)
        order_ids = [_place_order([("book-a", 1, 1000)]) for _ in range(2)]

        outcomes = self._confirm_together(order_ids)

        assert sorted(outcomes.values()) == ["InsufficientInventory", "ok"]
        assert _on_hand("book-a") == 0
        for order_id, outcome in outcomes.items():
            expected = OrderStatus.CONFIRMED if outcome == "ok" else OrderStatus.PENDING
            assert _order(order_id).status == expected.value

    def test_overlapping_confirmations_over_shared_books_never_oversell(self):
        _stock("book-a", 2)
        _stock("book-b", 2)
        order_ids = [
            _place_order([("book-a", 1, 1000), ("book-b", 1, 1000)]),
            _place_order([("book-b", 1, 1000), ("book-a", 1, 1000)]),
            _place_order([("book-a", 1, 1000), ("book-b", 1, 1000)]),
        ]

        outcomes = self._confirm_together(order_ids)

        assert sorted(outcomes.values()) == ["InsufficientInventory", "ok", "ok"]
        assert _on_hand("book-a") == 0
        assert _on_hand("book-b") == 0
        confirmed = [order_id for order_id in order_ids if _order(order_id).status == OrderStatus.CONFIRMED.value]
        assert sorted(confirmed) == sorted(oid for oid, outcome in outcomes.items() if outcome == "ok")
