"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from pytest_bdd import given, parsers, then

from ordering.cart.items import AddToCart
from ordering.projections.cart_view import get_cart
from shared.exceptions import EmptyCart, InsufficientStock, NotFound, StorefrontError
from shared.identity import UserIdentity

_ERROR_CLASSES = {
    "insufficient stock": InsufficientStock,
    "not found": NotFound,
    "empty cart": EmptyCart,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def products():
    """Products created by the scenario, by name."""
    return {}


@pytest.fixture()
def error():
    """Container for the error raised by the last When step."""
    return {"exc": None}


@pytest.fixture()
def attempt(error):
    """Run a When action, recording a core error instead of raising it."""

    def _attempt(action):
        error["exc"] = None
        try:
            return action()
        except StorefrontError as exc:
            error["exc"] = exc
            return None

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price} with {stock:d} in stock'))
def product_in_stock(make_product, products, name, price, stock):
    products[name] = make_product(name=name, price=price, stock=stock)


@given(parsers.cfparse("I am customer {user_id:d}"), target_fixture="shopper")
def shopper(user_id):
    return UserIdentity(user_id=user_id)


@given(parsers.cfparse('I added {quantity:d} of "{name}" to my cart'))
def already_added(cart_items, shopper, products, quantity, name):
    cart_items.add_to_cart(shopper, AddToCart(product_id=products[name].id, quantity=quantity))


@given(parsers.cfparse('customer {user_id:d} added {quantity:d} of "{name}" to their cart'))
def other_customer_added(cart_items, products, user_id, quantity, name):
    cart_items.add_to_cart(UserIdentity(user_id=user_id), AddToCart(product_id=products[name].id, quantity=quantity))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the request fails with {kind}"))
def request_fails(error, kind):
    assert isinstance(error["exc"], _ERROR_CLASSES[kind]), error["exc"]


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def product_stock(stock_of, products, name, stock):
    assert stock_of(products[name].id) == stock


@then(parsers.cfparse('my cart holds {quantity:d} of "{name}"'))
def cart_holds(cart_lines_of, shopper, products, quantity, name):
    assert cart_lines_of(shopper).get(products[name].id) == quantity


@then(parsers.cfparse('customer {user_id:d}\'s cart holds {quantity:d} of "{name}"'))
def other_cart_holds(cart_lines_of, products, user_id, quantity, name):
    assert cart_lines_of(UserIdentity(user_id=user_id)).get(products[name].id) == quantity


@then("my cart is empty")
def cart_is_empty(session_factory, shopper):
    assert get_cart(session_factory, shopper).lines == []
