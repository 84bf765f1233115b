import pytest
from sqlalchemy import select

from ordering.cart.cart import Cart, CartLine
from ordering.cart.items import ManageCartItemsHandler
from ordering.order.creation import PlaceOrderHandler
from ordering.order.order import Order, OrderLine
from shared.config import Settings


@pytest.fixture()
def cart_items(session_factory):
    return ManageCartItemsHandler(session_factory, settings=Settings(env="test"))


@pytest.fixture()
def restocking_cart_items(session_factory):
    return ManageCartItemsHandler(session_factory, settings=Settings(env="test", restock_on_remove=True))


@pytest.fixture()
def order_placement(session_factory):
    return PlaceOrderHandler(session_factory)


@pytest.fixture()
def cart_lines_of(session_factory):
    """Persisted cart lines of a user as ``{product_id: quantity}``."""

    def _cart_lines_of(identity):
        with session_factory() as session:
            rows = session.execute(
                select(CartLine.product_id, CartLine.quantity)
                .join(Cart, Cart.id == CartLine.cart_id)
                .where(Cart.user_id == identity.user_id)
            )
            return {product_id: quantity for product_id, quantity in rows}

    return _cart_lines_of


@pytest.fixture()
def order_counts(session_factory):
    """Number of persisted (orders, order lines)."""

    def _order_counts():
        with session_factory() as session:
            orders = len(session.scalars(select(Order.id)).all())
            lines = len(session.scalars(select(OrderLine.id)).all())
            return orders, lines

    return _order_counts
