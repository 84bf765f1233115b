"""Ordering bounded context: Shopping Cart and Order placement.

Carts hold per-user lines whose units are already reserved in the inventory
ledger. Placing an order snapshots those lines, with their prices, into an
Order and empties the cart in the same transaction.
"""

import structlog

logger = structlog.get_logger(__name__)
