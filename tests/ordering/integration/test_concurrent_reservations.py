"""Many workers racing for scarce stock on a file-backed database.

Outcomes per worker depend on scheduling and on SQLite's locking, so these
tests assert the invariants only: stock never goes negative, every reserved
unit is accounted for, and no user ends up with two carts.
"""

import threading

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from inventory.stock.ledger import StockLedger
from inventory.stock.stock import Product
from ordering.cart.cart import Cart, CartLine
from ordering.cart.items import AddToCart, ManageCartItemsHandler
from ordering.projections.cart_view import get_cart
from shared.config import Settings
from shared.exceptions import Conflict, InsufficientStock, StorageError
from shared.identity import UserIdentity
from shared.utils.db import create_db_engine, drop_db, session_factory, setup_db

EXPECTED_FAILURES = (InsufficientStock, StorageError, Conflict)


@pytest.fixture()
def file_session_factory(tmp_path):
    settings = Settings(env="test", database_url=f"sqlite:///{tmp_path / 'race.db'}")
    engine = create_db_engine(settings)
    setup_db(engine)
    yield session_factory(engine)
    drop_db(engine)
    engine.dispose()


def _run_workers(count, work):
    barrier = threading.Barrier(count)
    outcomes = [None] * count

    def worker(index):
        barrier.wait()
        try:
            work(index)
            outcomes[index] = "ok"
        except EXPECTED_FAILURES as exc:
            outcomes[index] = exc

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


class TestScarceStock:
    def test_racing_adds_never_oversell(self, file_session_factory):
        factory = file_session_factory
        with factory.begin() as session:
            product = Product(name="Limited edition", price=1, stock=3)
            session.add(product)

        handler = ManageCartItemsHandler(factory, settings=Settings(env="test"))

        outcomes = _run_workers(
            8,
            lambda index: handler.add_to_cart(
                UserIdentity(user_id=index + 1), AddToCart(product_id=product.id, quantity=1)
            ),
        )

        assert None not in outcomes
        with factory() as session:
            remaining = StockLedger(session).get_stock(product.id)
            reserved = session.scalar(select(func.coalesce(func.sum(CartLine.quantity), 0)))

        successes = outcomes.count("ok")
        assert remaining >= 0
        assert successes <= 3
        assert reserved == successes
        assert reserved + remaining == 3

    def test_racing_first_adds_create_one_cart(self, file_session_factory):
        factory = file_session_factory
        with factory.begin() as session:
            product = Product(name="Plentiful", price=1, stock=100)
            session.add(product)

        handler = ManageCartItemsHandler(factory, settings=Settings(env="test"))
        identity = UserIdentity(user_id=42)

        outcomes = _run_workers(
            4,
            lambda index: handler.add_to_cart(identity, AddToCart(product_id=product.id, quantity=1)),
        )

        assert None not in outcomes
        with factory() as session:
            carts = session.scalar(select(func.count(Cart.id)).where(Cart.user_id == 42))
            reserved = session.scalar(select(func.coalesce(func.sum(CartLine.quantity), 0)))
            remaining = StockLedger(session).get_stock(product.id)

        assert carts <= 1
        assert reserved == outcomes.count("ok")
        assert reserved + remaining == 100


class TestSameLineContention:
    def test_racing_re_adds_keep_every_reserved_unit(self, file_session_factory):
        factory = file_session_factory
        with factory.begin() as session:
            product = Product(name="Double click", price=1, stock=100)
            session.add(product)

        handler = ManageCartItemsHandler(factory, settings=Settings(env="test"))
        identity = UserIdentity(user_id=7)
        handler.add_to_cart(identity, AddToCart(product_id=product.id, quantity=1))

        outcomes = _run_workers(
            6,
            lambda index: handler.add_to_cart(identity, AddToCart(product_id=product.id, quantity=1)),
        )

        assert None not in outcomes
        with factory() as session:
            quantity = session.scalar(select(CartLine.quantity).where(CartLine.product_id == product.id))
            remaining = StockLedger(session).get_stock(product.id)

        assert quantity == 1 + outcomes.count("ok")
        assert quantity + remaining == 100

    def test_racing_first_lines_in_existing_cart_surface_as_conflict(self, file_session_factory):
        factory = file_session_factory
        with factory.begin() as session:
            warmup = Product(name="Warm-up", price=1, stock=10)
            product = Product(name="Contested", price=1, stock=100)
            session.add_all([warmup, product])

        handler = ManageCartItemsHandler(factory, settings=Settings(env="test"))
        identity = UserIdentity(user_id=7)
        handler.add_to_cart(identity, AddToCart(product_id=warmup.id, quantity=1))

        outcomes = _run_workers(
            4,
            lambda index: handler.add_to_cart(identity, AddToCart(product_id=product.id, quantity=1)),
        )

        assert None not in outcomes
        for outcome in outcomes:
            if isinstance(outcome, StorageError):
                assert not isinstance(outcome.__cause__, IntegrityError)

        with factory() as session:
            lines = session.scalars(select(CartLine).where(CartLine.product_id == product.id)).all()
            remaining = StockLedger(session).get_stock(product.id)

        assert len(lines) <= 1
        assert sum(line.quantity for line in lines) + remaining == 100


class TestFirstCartRead:
    def test_racing_reads_share_one_cart(self, file_session_factory):
        factory = file_session_factory
        identity = UserIdentity(user_id=11)
        views = [None] * 4

        def read(index):
            views[index] = get_cart(factory, identity)

        outcomes = _run_workers(4, read)

        assert None not in outcomes
        assert not any(isinstance(outcome, Conflict) for outcome in outcomes)
        with factory() as session:
            carts = session.scalar(select(func.count(Cart.id)).where(Cart.user_id == 11))

        assert carts == 1
        assert len({view.cart_id for view in views if view is not None}) == 1
