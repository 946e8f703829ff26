"""FastAPI routes for the Bookstore domain: orders and inventory."""

from fastapi import APIRouter
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from bookstore.api.schemas import (
    AddOrderLineRequest,
    CreateOrderRequest,
    InventoryResponse,
    OrderDetailResponse,
    OrderIdResponse,
    OrderLineResponse,
    OrderStatusResponse,
    OrderSummaryResponse,
    ShippingAddressSchema,
    StatusResponse,
    StockInventoryRequest,
)
from bookstore.inventory.inventory import Inventory
from bookstore.inventory.stocking import StockInventory
from bookstore.order.cancellation import CancelOrder
from bookstore.order.confirmation import ConfirmOrder
from bookstore.order.creation import CreateOrder
from bookstore.order.fulfillment import DeliverOrder, ShipOrder
from bookstore.order.modification import AddOrderLine, SetShippingAddress
from bookstore.order.order import Order, OrderStatus


def _order_summary(order: Order) -> OrderSummaryResponse:
    return OrderSummaryResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        status=order.status,
        line_count=len(order.lines),
        created_at=order.created_at,
    )


def _order_detail(order: Order) -> OrderDetailResponse:
    lines = sorted(order.lines, key=lambda line: str(line.book_id))
    try:
        subtotal, shipping_fee, total = order.subtotal, order.shipping_fee, order.total
    except ValidationError:
        subtotal = shipping_fee = total = None

    address = order.shipping_address
    return OrderDetailResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        status=order.status,
        lines=[
            OrderLineResponse(
                book_id=str(line.book_id),
                quantity=line.quantity,
                unit_price=line.unit_price.amount,
                currency=line.unit_price.currency,
                subtotal=line.subtotal.amount,
            )
            for line in lines
        ],
        shipping_address=ShippingAddressSchema(**address.as_dict()) if address else None,
        subtotal=subtotal.amount if subtotal is not None else None,
        shipping_fee=shipping_fee.amount if shipping_fee is not None else None,
        total=total.amount if total is not None else None,
        currency=order.currency,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _inventory(inventory: Inventory) -> InventoryResponse:
    return InventoryResponse(
        book_id=str(inventory.book_id),
        quantity_on_hand=inventory.quantity_on_hand,
        updated_at=inventory.updated_at,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def create_order(body: CreateOrderRequest) -> OrderIdResponse:
    command = CreateOrder(customer_id=body.customer_id)
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.post("/{order_id}/lines", response_model=StatusResponse)
async def add_order_line(order_id: str, body: AddOrderLineRequest) -> StatusResponse:
    command = AddOrderLine(
        order_id=order_id,
        book_id=body.book_id,
        quantity=body.quantity,
        unit_price=body.unit_price,
        currency=body.currency,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/shipping-address", response_model=StatusResponse)
async def set_shipping_address(order_id: str, body: ShippingAddressSchema) -> StatusResponse:
    command = SetShippingAddress(order_id=order_id, **body.model_dump())
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/confirm", response_model=OrderStatusResponse)
async def confirm_order(order_id: str) -> OrderStatusResponse:
    status = current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
    return OrderStatusResponse(order_id=order_id, status=status)


@order_router.post("/{order_id}/cancel", response_model=OrderStatusResponse)
async def cancel_order(order_id: str) -> OrderStatusResponse:
    status = current_domain.process(CancelOrder(order_id=order_id), asynchronous=False)
    return OrderStatusResponse(order_id=order_id, status=status)


@order_router.post("/{order_id}/ship", response_model=OrderStatusResponse)
async def ship_order(order_id: str) -> OrderStatusResponse:
    status = current_domain.process(ShipOrder(order_id=order_id), asynchronous=False)
    return OrderStatusResponse(order_id=order_id, status=status)


@order_router.post("/{order_id}/deliver", response_model=OrderStatusResponse)
async def deliver_order(order_id: str) -> OrderStatusResponse:
    status = current_domain.process(DeliverOrder(order_id=order_id), asynchronous=False)
    return OrderStatusResponse(order_id=order_id, status=status)


@order_router.get("", response_model=list[OrderSummaryResponse])
async def list_orders(status: str | None = None, customer_id: str | None = None) -> list[OrderSummaryResponse]:
    repo = current_domain.repository_for(Order)
    if status is not None:
        try:
            orders = repo.by_status(OrderStatus(status))
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {status}"]}) from None
        if customer_id is not None:
            orders = [order for order in orders if str(order.customer_id) == customer_id]
    elif customer_id is not None:
        orders = repo.by_customer(customer_id)
    else:
        orders = repo.all_orders()
    return [_order_summary(order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(order_id: str) -> OrderDetailResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return _order_detail(order)


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.post("", status_code=201, response_model=InventoryResponse)
async def stock_inventory(body: StockInventoryRequest) -> InventoryResponse:
    command = StockInventory(book_id=body.book_id, quantity=body.quantity)
    book_id = current_domain.process(command, asynchronous=False)
    return _inventory(current_domain.repository_for(Inventory).get(book_id))


@inventory_router.get("", response_model=list[InventoryResponse])
async def list_inventories(max_quantity: int | None = None) -> list[InventoryResponse]:
    repo = current_domain.repository_for(Inventory)
    inventories = repo.all_inventories() if max_quantity is None else repo.low_stock(max_quantity)
    return [_inventory(inventory) for inventory in inventories]


@inventory_router.get("/{book_id}", response_model=InventoryResponse)
async def get_inventory(book_id: str) -> InventoryResponse:
    return _inventory(current_domain.repository_for(Inventory).get(book_id))
