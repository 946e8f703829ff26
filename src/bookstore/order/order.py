"""Order aggregate, the core of the bookstore domain.

An order collects lines (one per book), a shipping address, and moves through
a small state machine. Totals are always derived from the lines, never stored.

State Machine:
    PENDING → CONFIRMED → SHIPPED → DELIVERED
    PENDING | CONFIRMED → CANCELLED

Stock is not reserved here: the confirmation coordinator reserves inventory
for every line first and only then calls ``confirm()``.
"""

import json
import re
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from bookstore.domain import bookstore
from bookstore.exceptions import InvalidStateTransition
from bookstore.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderCreated,
    OrderDelivered,
    OrderLineAdded,
    OrderShipped,
    ShippingAddressSet,
)
from bookstore.shared.money import DEFAULT_CURRENCY, Money

FREE_SHIPPING_THRESHOLD = 10_000
FLAT_SHIPPING_FEE = 500

_POSTAL_CODE = re.compile(r"[0-9]{7}")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# (current status, action) → next status. Anything missing is rejected.
_TRANSITIONS = {
    (OrderStatus.PENDING, "confirm"): OrderStatus.CONFIRMED,
    (OrderStatus.PENDING, "cancel"): OrderStatus.CANCELLED,
    (OrderStatus.CONFIRMED, "cancel"): OrderStatus.CANCELLED,
    (OrderStatus.CONFIRMED, "ship"): OrderStatus.SHIPPED,
    (OrderStatus.SHIPPED, "deliver"): OrderStatus.DELIVERED,
}

# States in which lines and the shipping address may change
_MODIFIABLE_STATES = {OrderStatus.PENDING}

# States that can only be reached with a shipping address on file
_ADDRESSED_STATES = {OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.DELIVERED}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@bookstore.value_object(part_of="Order")
class ShippingAddress:
    """A Japanese postal address the order ships to.

    The address is replaced wholesale on change; individual fields are never
    patched on an existing order.
    """

    postal_code = String(required=True, max_length=7)
    prefecture = String(required=True, max_length=50)
    city = String(required=True, max_length=100)
    street = String(required=True, max_length=200)
    building = String(max_length=200)

    @invariant.post
    def postal_code_must_be_seven_digits(self):
        if not _POSTAL_CODE.fullmatch(self.postal_code or ""):
            raise ValidationError({"postal_code": ["Postal code must be exactly 7 digits"]})

    @invariant.post
    def required_parts_must_not_be_blank(self):
        errors = {}
        for field_name in ("prefecture", "city", "street"):
            if not (getattr(self, field_name) or "").strip():
                errors[field_name] = [f"{field_name.capitalize()} cannot be blank"]
        if errors:
            raise ValidationError(errors)

    def as_dict(self):
        return {
            "postal_code": self.postal_code,
            "prefecture": self.prefecture,
            "city": self.city,
            "street": self.street,
            "building": self.building,
        }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@bookstore.entity(part_of="Order")
class OrderLine:
    """One book on an order: how many copies, at what unit price.

    Lines are keyed by ``book_id`` within an order; re-adding a book replaces
    the existing line's quantity and price.
    """

    book_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = ValueObject(Money, required=True)

    @property
    def subtotal(self):
        return self.unit_price.multiply(self.quantity)

    def as_dict(self):
        return {
            "book_id": str(self.book_id),
            "quantity": self.quantity,
            "unit_price": self.unit_price.amount,
            "currency": self.unit_price.currency,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@bookstore.aggregate
class Order:
    customer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    lines = HasMany(OrderLine)
    shipping_address = ValueObject(ShippingAddress)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def lines_must_be_unique_per_book(self):
        book_ids = [str(line.book_id) for line in self.lines]
        if len(book_ids) != len(set(book_ids)):
            raise ValidationError({"lines": ["An order can hold only one line per book"]})

    @invariant.post
    def confirmed_orders_must_have_shipping_address(self):
        if OrderStatus(self.status) in _ADDRESSED_STATES and self.shipping_address is None:
            raise ValidationError({"shipping_address": [f"A {self.status} order must have a shipping address"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id=None):
        """Open a new, empty order.

        The customer id is opaque. When the caller has none, a fresh one is
        generated for this order alone.
        """
        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id or str(uuid4()),
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                customer_id=str(order.customer_id),
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State machine helpers
    # -------------------------------------------------------------------
    def _next_status(self, action):
        current = OrderStatus(self.status)
        target = _TRANSITIONS.get((current, action))
        if target is None:
            raise InvalidStateTransition(current.value, action)
        return target

    def _assert_modifiable(self, action):
        current = OrderStatus(self.status)
        if current not in _MODIFIABLE_STATES:
            raise InvalidStateTransition(current.value, action)

    def line_for(self, book_id):
        return next((line for line in self.lines if str(line.book_id) == str(book_id)), None)

    def _lines_snapshot(self, lines=None):
        return [line.as_dict() for line in (self.lines if lines is None else lines)]

    # -------------------------------------------------------------------
    # Derived totals
    # -------------------------------------------------------------------
    @property
    def currency(self):
        return self.lines[0].unit_price.currency if self.lines else DEFAULT_CURRENCY

    @property
    def subtotal(self):
        """Sum of line subtotals. Lines in different currencies raise ``ValidationError``."""
        subtotal = Money.zero(self.currency)
        for line in self.lines:
            subtotal = subtotal.add(line.subtotal)
        return subtotal

    @property
    def shipping_fee(self):
        subtotal = self.subtotal
        if subtotal.is_at_least(FREE_SHIPPING_THRESHOLD):
            return Money.zero(subtotal.currency)
        return Money(amount=FLAT_SHIPPING_FEE, currency=subtotal.currency)

    @property
    def total(self):
        return self.subtotal.add(self.shipping_fee)

    # -------------------------------------------------------------------
    # Composition (PENDING only)
    # -------------------------------------------------------------------
    def add_line(self, book_id, quantity, unit_price):
        """Add a book to the order, replacing the existing line for that book if any."""
        self._assert_modifiable("add_line")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be a positive integer"]})
        if not isinstance(unit_price, Money):
            raise ValidationError({"unit_price": ["Unit price must be a Money value"]})

        existing = self.line_for(book_id)
        if existing:
            with atomic_change(self):
                existing.quantity = quantity
                existing.unit_price = unit_price
        else:
            self.add_lines(
                OrderLine(
                    book_id=book_id,
                    quantity=quantity,
                    unit_price=unit_price,
                )
            )
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderLineAdded(
                order_id=str(self.id),
                book_id=str(book_id),
                quantity=quantity,
                unit_price=unit_price.amount,
                currency=unit_price.currency,
                replaced=existing is not None,
            )
        )

    def set_shipping_address(self, address):
        """Replace the shipping address. Only allowed while PENDING."""
        self._assert_modifiable("set_shipping_address")
        if not isinstance(address, ShippingAddress):
            raise ValidationError({"shipping_address": ["Shipping address must be a ShippingAddress value"]})

        self.shipping_address = address
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ShippingAddressSet(
                order_id=str(self.id),
                shipping_address=json.dumps(address.as_dict()),
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def ensure_confirmable(self):
        """Check every confirmation precondition that does not involve inventory."""
        self._next_status("confirm")
        if not self.lines:
            raise ValidationError({"lines": ["An order needs at least one line to be confirmed"]})
        if self.shipping_address is None:
            raise ValidationError({"shipping_address": ["An order needs a shipping address to be confirmed"]})
        # Mixed currencies fail here, before any stock is touched
        self.total

    def confirm(self):
        """Confirm the order. Stock must already be reserved for every line."""
        self.ensure_confirmable()
        subtotal = self.subtotal
        shipping_fee = self.shipping_fee
        total = subtotal.add(shipping_fee)

        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.updated_at = now

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                lines=json.dumps(self._lines_snapshot()),
                subtotal=subtotal.amount,
                shipping_fee=shipping_fee.amount,
                total=total.amount,
                currency=total.currency,
                confirmed_at=now,
            )
        )

    def cancel(self):
        """Cancel the order.

        Returns the lines whose reservations must be given back to the
        inventory ledger, sorted by book id. A pending order has reserved
        nothing, so the list is empty.
        """
        target = self._next_status("cancel")
        previous = OrderStatus(self.status)
        to_release = []
        if previous == OrderStatus.CONFIRMED:
            to_release = sorted(self.lines, key=lambda line: str(line.book_id))

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=previous.value,
                lines_to_release=json.dumps(self._lines_snapshot(to_release)),
                cancelled_at=now,
            )
        )
        return to_release

    def ship(self):
        """Mark the confirmed order as shipped."""
        target = self._next_status("ship")
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                shipping_address=json.dumps(self.shipping_address.as_dict()),
                shipped_at=now,
            )
        )

    def deliver(self):
        """Mark the shipped order as delivered."""
        target = self._next_status("deliver")
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                delivered_at=now,
            )
        )
