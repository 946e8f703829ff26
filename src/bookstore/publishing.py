"""Event publishing: relays committed domain events to an external sink.

Protean dispatches raised events to the handlers below only after the unit of
work that raised them commits. Each handler hands the event to a publisher.
Publishing is best-effort; a failing sink is logged and never undoes the
committed change.

The active sink is a process-wide setting chosen once at startup:
``create_app(publisher=...)`` passes it to ``use_publisher``.
"""

from abc import ABC, abstractmethod

import structlog
from protean import handle

from bookstore.domain import bookstore
from bookstore.inventory.events import InventoryReleased, InventoryReserved, InventoryStocked
from bookstore.inventory.inventory import Inventory
from bookstore.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderCreated,
    OrderDelivered,
    OrderLineAdded,
    OrderShipped,
    ShippingAddressSet,
)
from bookstore.order.order import Order

logger = structlog.get_logger(__name__)


class EventPublisher(ABC):
    """Abstract interface for sinks of committed domain events."""

    @abstractmethod
    def publish(self, event) -> None:
        """Deliver one committed event. Failures are logged by the relay."""
        ...


class StructlogEventPublisher(EventPublisher):
    """Writes every event to the application log."""

    def publish(self, event) -> None:
        logger.info(
            "Domain event published",
            event_type=event.__class__.__name__,
            payload=event.to_dict(),
        )


_publisher: EventPublisher = StructlogEventPublisher()


def use_publisher(publisher: EventPublisher) -> None:
    """Route every committed event to ``publisher``."""
    global _publisher
    _publisher = publisher


def relay(event) -> None:
    """Hand ``event`` to the current publisher, logging any failure."""
    try:
        _publisher.publish(event)
    except Exception as exc:
        logger.error(
            "Event publishing failed",
            event_type=event.__class__.__name__,
            error=str(exc),
        )


@bookstore.event_handler(part_of=Order)
class OrderEventRelay:
    @handle(OrderCreated)
    def on_order_created(self, event: OrderCreated) -> None:
        relay(event)

    @handle(OrderLineAdded)
    def on_order_line_added(self, event: OrderLineAdded) -> None:
        relay(event)

    @handle(ShippingAddressSet)
    def on_shipping_address_set(self, event: ShippingAddressSet) -> None:
        relay(event)

    @handle(OrderConfirmed)
    def on_order_confirmed(self, event: OrderConfirmed) -> None:
        relay(event)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        relay(event)

    @handle(OrderShipped)
    def on_order_shipped(self, event: OrderShipped) -> None:
        relay(event)

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        relay(event)


@bookstore.event_handler(part_of=Inventory)
class InventoryEventRelay:
    @handle(InventoryStocked)
    def on_inventory_stocked(self, event: InventoryStocked) -> None:
        relay(event)

    @handle(InventoryReserved)
    def on_inventory_reserved(self, event: InventoryReserved) -> None:
        relay(event)

    @handle(InventoryReleased)
    def on_inventory_released(self, event: InventoryReleased) -> None:
        relay(event)