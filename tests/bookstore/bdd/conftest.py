"""Shared BDD fixtures and step definitions for the Bookstore domain."""

from bookstore.inventory.inventory import Inventory
from bookstore.inventory.stocking import StockInventory
from bookstore.order.creation import CreateOrder
from bookstore.order.modification import AddOrderLine, SetShippingAddress
from bookstore.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.parse('the inventory holds {quantity:d} copies of "{book_id}"'))
def _(quantity, book_id):
    current_domain.process(StockInventory(book_id=book_id, quantity=quantity), asynchronous=False)


@given(
    parsers.parse('a pending order for {quantity:d} copies of "{book_id}" at {price:d} yen'),
    target_fixture="order_id",
)
def _(quantity, book_id, price):
    order_id = current_domain.process(CreateOrder(customer_id="cust-bdd"), asynchronous=False)
    current_domain.process(
        AddOrderLine(order_id=order_id, book_id=book_id, quantity=quantity, unit_price=price),
        asynchronous=False,
    )
    return order_id


@given(parsers.parse('the order also has {quantity:d} copies of "{book_id}" at {price:d} yen'))
def _(order_id, quantity, book_id, price):
    current_domain.process(
        AddOrderLine(order_id=order_id, book_id=book_id, quantity=quantity, unit_price=price),
        asynchronous=False,
    )


@given(parsers.parse('the order ships to postal code "{postal_code}"'))
def _(order_id, postal_code):
    current_domain.process(
        SetShippingAddress(
            order_id=order_id,
            postal_code=postal_code,
            prefecture="Tokyo",
            city="Chiyoda-ku",
            street="1-1 Chiyoda",
        ),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.parse('the order status is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.parse('the inventory holds {quantity:d} copies of "{book_id}" on hand'))
def _(quantity, book_id):
    assert current_domain.repository_for(Inventory).get(book_id).quantity_on_hand == quantity


@then(parsers.parse("the order subtotal is {amount:d} yen"))
def _(order_id, amount):
    assert current_domain.repository_for(Order).get(order_id).subtotal.amount == amount


@then(parsers.parse("the order shipping fee is {amount:d} yen"))
def _(order_id, amount):
    assert current_domain.repository_for(Order).get(order_id).shipping_fee.amount == amount


@then(parsers.parse("the order total is {amount:d} yen"))
def _(order_id, amount):
    assert current_domain.repository_for(Order).get(order_id).total.amount == amount
