import os
from decimal import Decimal
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the configuration overlay before anything reads settings, so the
    engine fixtures below bind to the database of that environment.
    """
    os.environ["STOREFRONT_ENV"] = session.config.option.env

    from shared.config import reset_settings
    from shared.utils.db import get_session_factory

    reset_settings()
    get_session_factory.cache_clear()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def engine():
    from shared.utils.db import create_db_engine, drop_db, setup_db

    engine = create_db_engine()
    setup_db(engine)

    yield engine

    drop_db(engine)
    engine.dispose()


@pytest.fixture(scope="session")
def session_factory(engine):
    from shared.utils.db import session_factory

    return session_factory(engine)


@pytest.fixture(autouse=True)
def run_around_tests(engine):
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from shared.utils.db import truncate_db
    from shared.utils.logging import clear_context

    truncate_db(engine)
    clear_context()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product(session_factory):
    """Insert a product and return it (detached, attributes loaded)."""
    from inventory.stock.stock import Product

    def _make(name="Widget", price="10.00", stock=5):
        product = Product(name=name, price=Decimal(price), stock=stock)
        with session_factory.begin() as session:
            session.add(product)
        return product

    return _make


@pytest.fixture()
def stock_of(session_factory):
    """Read a product's current stock straight from the table."""
    from inventory.stock.ledger import StockLedger

    def _stock_of(product_id):
        with session_factory() as session:
            return StockLedger(session).get_stock(product_id)

    return _stock_of


@pytest.fixture()
def customer():
    from shared.identity import UserIdentity

    return UserIdentity(user_id=1)


@pytest.fixture()
def other_customer():
    from shared.identity import UserIdentity

    return UserIdentity(user_id=2)
