"""Committed events are relayed to the configured publisher on a best-effort basis."""

import pytest
from bookstore.exceptions import InvalidStateTransition
from bookstore.inventory.stocking import StockInventory
from bookstore.order.cancellation import CancelOrder
from bookstore.order.creation import CreateOrder
from bookstore.order.events import OrderCreated
from bookstore.order.order import Order
from bookstore.publishing import EventPublisher, relay, use_publisher
from protean import current_domain


class _RecordingPublisher(EventPublisher):
    def __init__(self):
        self.events = []

    def publish(self, event):
        self.events.append(event)


class _BrokenPublisher(EventPublisher):
    def publish(self, event):
        raise ConnectionError("sink unavailable")


class TestEventRelay:
    def test_committed_events_reach_publisher(self):
        publisher = _RecordingPublisher()
        use_publisher(publisher)

        order_id = current_domain.process(CreateOrder(customer_id="cust-001"), asynchronous=False)
        current_domain.process(StockInventory(book_id="book-a", quantity=3), asynchronous=False)

        names = [event.__class__.__name__ for event in publisher.events]
        assert names == ["OrderCreated", "InventoryStocked"]
        assert str(publisher.events[0].order_id) == order_id

    def test_rejected_command_publishes_nothing(self):
        order_id = current_domain.process(CreateOrder(customer_id="cust-001"), asynchronous=False)
        current_domain.process(CancelOrder(order_id=order_id), asynchronous=False)

        publisher = _RecordingPublisher()
        use_publisher(publisher)
        with pytest.raises(InvalidStateTransition):
            current_domain.process(CancelOrder(order_id=order_id), asynchronous=False)

        assert publisher.events == []

    def test_publisher_failure_does_not_undo_the_change(self):
        use_publisher(_BrokenPublisher())

        order_id = current_domain.process(CreateOrder(customer_id="cust-001"), asynchronous=False)

        assert current_domain.repository_for(Order).get(order_id).status == "Pending"

    def test_relay_swallows_publisher_errors(self):
        use_publisher(_BrokenPublisher())
        event = Order.create(customer_id="cust-001")._events[0]
        assert isinstance(event, OrderCreated)

        relay(event)


class TestEventPublisherInterface:
    def test_publisher_interface_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            EventPublisher()

    def test_publisher_must_implement_publish(self):
        class _Incomplete(EventPublisher):
            pass

        with pytest.raises(TypeError):
            _Incomplete()
