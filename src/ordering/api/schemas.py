"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer): separate from
the internal commands and views.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: int = Field(ge=1)
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": 42,
                    "quantity": 2,
                }
            ]
        }
    }


class CartLineResponse(BaseModel):
    line_id: int
    product_id: int
    name: str
    price: Decimal
    quantity: int
    subtotal: Decimal


class CartResponse(BaseModel):
    cart_id: int
    lines: list[CartLineResponse]
    total: Decimal


# ---------------------------------------------------------------------------
# Order Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    shipping_address: str = Field(min_length=1, max_length=2000)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": "123 Main St, Springfield, IL 62701",
                }
            ]
        }
    }


class OrderLineResponse(BaseModel):
    product_id: int
    name: str
    price: Decimal
    quantity: int
    subtotal: Decimal


class OrderResponse(BaseModel):
    order_id: int
    status: str
    shipping_address: str
    created_at: datetime
    total: Decimal
    lines: list[OrderLineResponse]


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
