"""FastAPI routes for the Ordering domain: cart and orders.

Routes are plain ``def`` functions; FastAPI runs them on its threadpool, one
request per worker thread. The caller's identity comes from headers set by
the upstream authentication gateway.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import sessionmaker

from ordering.api.schemas import (
    AddCartItemRequest,
    CartResponse,
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
)
from ordering.cart.items import AddToCart, ManageCartItemsHandler, RemoveFromCart
from ordering.order.creation import PlaceOrder, PlaceOrderHandler
from ordering.projections.cart_view import get_cart
from ordering.projections.order_detail import get_order, list_orders
from shared.identity import UserIdentity
from shared.utils.db import get_session_factory
from shared.utils.logging import add_context


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
async def current_user(
    x_user_id: Annotated[int | None, Header()] = None,
    x_user_role: Annotated[str, Header()] = "customer",
) -> UserIdentity:
    # Async so the bound log context reaches the threadpool route that follows
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    identity = UserIdentity(user_id=x_user_id, role=x_user_role)
    add_context(user_id=identity.user_id)
    return identity


CurrentUser = Annotated[UserIdentity, Depends(current_user)]
SessionFactory = Annotated[sessionmaker, Depends(get_session_factory)]


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
def show_cart(identity: CurrentUser, session_factory: SessionFactory):
    return get_cart(session_factory, identity).to_dict()


@cart_router.post("/items", response_model=CartResponse)
def add_cart_item(body: AddCartItemRequest, identity: CurrentUser, session_factory: SessionFactory):
    command = AddToCart(
        product_id=body.product_id,
        quantity=body.quantity,
    )
    return ManageCartItemsHandler(session_factory).add_to_cart(identity, command).to_dict()


@cart_router.delete("/items/{line_id}", response_model=CartResponse)
def remove_cart_item(line_id: int, identity: CurrentUser, session_factory: SessionFactory):
    command = RemoveFromCart(line_id=line_id)
    return ManageCartItemsHandler(session_factory).remove_from_cart(identity, command).to_dict()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def place_order(body: PlaceOrderRequest, identity: CurrentUser, session_factory: SessionFactory):
    command = PlaceOrder(shipping_address=body.shipping_address)
    return PlaceOrderHandler(session_factory).place_order(identity, command).to_dict()


@order_router.get("", response_model=OrderListResponse)
def show_orders(identity: CurrentUser, session_factory: SessionFactory):
    return {"orders": [view.to_dict() for view in list_orders(session_factory, identity)]}


@order_router.get("/{order_id}", response_model=OrderResponse)
def show_order(order_id: int, identity: CurrentUser, session_factory: SessionFactory):
    return get_order(session_factory, identity, order_id).to_dict()
