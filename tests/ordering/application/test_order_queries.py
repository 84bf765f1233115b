"""Application tests for the cart and order read models."""

from decimal import Decimal

import pytest

from ordering.cart.items import AddToCart
from ordering.order.creation import PlaceOrder
from ordering.projections.cart_view import get_cart
from ordering.projections.order_detail import get_order, list_orders
from shared.exceptions import NotFound


def _order(cart_items, order_placement, identity, product, quantity, address):
    cart_items.add_to_cart(identity, AddToCart(product_id=product.id, quantity=quantity))
    return order_placement.place_order(identity, PlaceOrder(shipping_address=address))


class TestCartView:
    def test_cart_is_created_lazily(self, session_factory, customer):
        first = get_cart(session_factory, customer)
        second = get_cart(session_factory, customer)

        assert first.cart_id == second.cart_id
        assert first.lines == []
        assert first.total == Decimal("0.00")

    def test_each_user_has_own_cart(self, session_factory, customer, other_customer):
        assert get_cart(session_factory, customer).cart_id != get_cart(session_factory, other_customer).cart_id

    def test_view_serializes_to_dict(self, session_factory, cart_items, customer, make_product):
        product = make_product(name="Lamp", price="4.00")
        cart_items.add_to_cart(customer, AddToCart(product_id=product.id, quantity=2))

        data = get_cart(session_factory, customer).to_dict()

        assert data["total"] == Decimal("8.00")
        assert data["lines"][0]["name"] == "Lamp"
        assert data["lines"][0]["subtotal"] == Decimal("8.00")


class TestListOrders:
    def test_newest_first_with_lines(self, session_factory, cart_items, order_placement, customer, make_product):
        product = make_product(price="3.00", stock=10)
        first = _order(cart_items, order_placement, customer, product, 1, "1 Main St")
        second = _order(cart_items, order_placement, customer, product, 2, "1 Main St")

        orders = list_orders(session_factory, customer)

        assert [order.order_id for order in orders] == [second.order_id, first.order_id]
        assert [order.total for order in orders] == [Decimal("6.00"), Decimal("3.00")]
        assert [len(order.lines) for order in orders] == [1, 1]

    def test_only_callers_orders(
        self, session_factory, cart_items, order_placement, customer, other_customer, make_product
    ):
        product = make_product(stock=10)
        _order(cart_items, order_placement, customer, product, 1, "1 Main St")

        assert list_orders(session_factory, other_customer) == []

    def test_no_orders(self, session_factory, customer):
        assert list_orders(session_factory, customer) == []


class TestGetOrder:
    def test_get_own_order(self, session_factory, cart_items, order_placement, customer, make_product):
        product = make_product(name="Desk", price="120.00", stock=3)
        placed = _order(cart_items, order_placement, customer, product, 1, "9 Elm Rd")

        order = get_order(session_factory, customer, placed.order_id)

        assert order.order_id == placed.order_id
        assert order.status == "pending"
        assert order.shipping_address == "9 Elm Rd"
        assert order.total == Decimal("120.00")
        assert [(line.name, line.quantity) for line in order.lines] == [("Desk", 1)]

    def test_other_users_order_is_not_found(
        self, session_factory, cart_items, order_placement, customer, other_customer, make_product
    ):
        product = make_product(stock=3)
        placed = _order(cart_items, order_placement, customer, product, 1, "9 Elm Rd")

        with pytest.raises(NotFound):
            get_order(session_factory, other_customer, placed.order_id)

    def test_missing_order(self, session_factory, customer):
        with pytest.raises(NotFound):
            get_order(session_factory, customer, 999)
