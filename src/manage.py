"""Storefront database management CLI.

Provides commands to create and drop the schema of the configured database
(``STOREFRONT_DATABASE_URL``, or the default for ``STOREFRONT_ENV``).

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py seed-products --count 10 --stock 5
"""

import argparse
import sys
from decimal import Decimal


def setup_database():
    """Create every table."""
    from shared.utils.db import create_db_engine, setup_db

    engine = create_db_engine()
    print(f"Creating schema on {engine.url.render_as_string(hide_password=True)}...")
    setup_db(engine)
    print("Done.")


def drop_database():
    """Drop every table."""
    from shared.utils.db import create_db_engine, drop_db

    engine = create_db_engine()
    print(f"Dropping schema on {engine.url.render_as_string(hide_password=True)}...")
    drop_db(engine)
    print("Done.")


def seed_products(count, stock, price):
    """Insert demo products, for local runs and load tests."""
    from inventory.stock.stock import Product
    from shared.utils.db import create_db_engine, session_factory

    factory = session_factory(create_db_engine())
    with factory.begin() as session:
        for index in range(1, count + 1):
            session.add(Product(name=f"Product {index}", price=price, stock=stock))
    print(f"Seeded {count} products with {stock} units each.")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed-products", help="Insert demo products")
    seed_parser.add_argument("--count", type=int, default=10)
    seed_parser.add_argument("--stock", type=int, default=100)
    seed_parser.add_argument("--price", type=Decimal, default=Decimal("9.99"))

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-products":
        seed_products(args.count, args.stock, args.price)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
