"""Pydantic request/response schemas for the Bookstore API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from bookstore.shared.money import DEFAULT_CURRENCY


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    customer_id: str | None = None

    model_config = {"json_schema_extra": {"examples": [{"customer_id": "cust-001"}]}}


class AddOrderLineRequest(BaseModel):
    book_id: str
    quantity: int
    unit_price: int = Field(ge=0)
    currency: str = DEFAULT_CURRENCY

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "book_id": "book-001",
                    "quantity": 2,
                    "unit_price": 1500,
                    "currency": "JPY",
                }
            ]
        }
    }


class ShippingAddressSchema(BaseModel):
    postal_code: str
    prefecture: str
    city: str
    street: str
    building: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "postal_code": "1000001",
                    "prefecture": "Tokyo",
                    "city": "Chiyoda-ku",
                    "street": "1-1 Chiyoda",
                    "building": None,
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Inventory Request Schemas
# ---------------------------------------------------------------------------
class StockInventoryRequest(BaseModel):
    book_id: str
    quantity: int


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class OrderStatusResponse(BaseModel):
    order_id: str
    status: str


class OrderLineResponse(BaseModel):
    book_id: str
    quantity: int
    unit_price: int
    currency: str
    subtotal: int


class OrderSummaryResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    line_count: int
    created_at: datetime | None = None


class OrderDetailResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    lines: list[OrderLineResponse]
    shipping_address: ShippingAddressSchema | None = None
    # Totals are absent while the lines mix currencies
    subtotal: int | None = None
    shipping_fee: int | None = None
    total: int | None = None
    currency: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InventoryResponse(BaseModel):
    book_id: str
    quantity_on_hand: int
    updated_at: datetime | None = None
