"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names and limits of the API's request schemas.
Products are not created through the API; seed them first with
``python src/manage.py seed-products --count N --stock M`` and point
``LOADTEST_PRODUCT_COUNT`` at the same N.
"""

import itertools
import os
import random

from faker import Faker

fake = Faker()

PRODUCT_COUNT = int(os.getenv("LOADTEST_PRODUCT_COUNT", "10"))

# A handful of products every scarce-stock shopper fights over
SCARCE_PRODUCT_COUNT = int(os.getenv("LOADTEST_SCARCE_PRODUCT_COUNT", "2"))

_user_ids = itertools.count(int(os.getenv("LOADTEST_FIRST_USER_ID", "100000")))


def next_user_id() -> int:
    """Distinct shopper ids per Locust user within one run."""
    return next(_user_ids)


def cart_item_data(max_quantity: int = 3) -> dict:
    return {
        "product_id": random.randint(1, PRODUCT_COUNT),
        "quantity": random.randint(1, max_quantity),
    }


def scarce_item_data() -> dict:
    return {
        "product_id": random.randint(1, SCARCE_PRODUCT_COUNT),
        "quantity": 1,
    }


def shipping_address() -> dict:
    return {"shipping_address": fake.address().replace("\n", ", ")[:2000]}
