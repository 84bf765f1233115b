"""Error taxonomy shared by the inventory and ordering contexts.

Every error the core raises is a ``StorefrontError``. The HTTP adapter maps
each kind to a status code; nothing inside the core retries on any of them.
"""


class StorefrontError(Exception):
    """Base class for all errors surfaced by the core."""

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)


class ValidationError(StorefrontError):
    """Bad input shape or values, rejected before any transaction opens.

    ``messages`` maps a field name to a list of error strings, for example
    ``{"quantity": ["Quantity must be positive"]}``.
    """

    def __init__(self, messages: dict[str, list[str]]):
        self.messages = messages
        super().__init__("; ".join(f"{field}: {', '.join(errors)}" for field, errors in messages.items()))


class EmptyCart(ValidationError):
    """An order was requested from a cart that does not exist or has no lines."""

    def __init__(self, message: str = "Cart is empty"):
        super().__init__({"cart": [message]})


class NotFound(StorefrontError):
    """Unknown product, cart, cart line or order."""


class InsufficientStock(StorefrontError):
    """The ledger cannot cover the requested quantity."""

    def __init__(self, product_id: int, requested: int, available: int | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        if available is None:
            message = f"Not enough stock for product {product_id}: {requested} requested"
        else:
            message = f"Not enough stock for product {product_id}: {available} available, {requested} requested"
        super().__init__(message)


class Conflict(StorefrontError):
    """A uniqueness race, such as two requests creating the same user's cart."""


class StorageError(StorefrontError):
    """The backing store failed to execute or commit."""


class TransactionTimeout(StorageError):
    """A unit of work outlived its deadline and was rolled back."""
