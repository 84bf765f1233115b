"""Inventory bounded context: per-product stock and the ledger that guards it.

Stock is reserved the moment a product lands in a cart. The ledger is the only
writer of ``products.stock`` and it never lets the count go below zero.
"""

import structlog

logger = structlog.get_logger(__name__)
