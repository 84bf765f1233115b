"""StockLedger: reads and conditional writes against ``products.stock``.

The ledger works on the session of the caller's unit of work, so its writes
commit or roll back together with the cart or order rows written beside them.

Stock Model:
    stock:     units still available to new reservations
    reserved:  not stored here; a unit moves out of ``stock`` the moment a
               cart line claims it and never comes back on its own

``decrease_stock`` is a single statement::

    UPDATE products SET stock = stock - :amount
     WHERE id = :product_id AND stock >= :amount

The database evaluates the guard and the write together, so two requests
racing for the last units cannot both succeed and no application lock is
needed.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from inventory.domain import logger
from inventory.stock.stock import Product
from shared.exceptions import InsufficientStock, NotFound, ValidationError
from shared.utils.db import utcnow


def _require_positive(amount) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError({"amount": ["Amount must be a positive integer"]})


class StockLedger:
    def __init__(self, session: Session):
        self.session = session

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_product(self, product_id: int, for_update: bool = False) -> Product:
        """Load a product row, optionally locking it until the transaction ends."""
        stmt = select(Product).where(Product.id == product_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        product = self.session.scalars(stmt).one_or_none()
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product

    def get_stock(self, product_id: int) -> int:
        stock = self.session.scalar(select(Product.stock).where(Product.id == product_id))
        if stock is None:
            raise NotFound(f"Product {product_id} not found")
        return stock

    def get_price(self, product_id: int) -> Decimal:
        price = self.session.scalar(select(Product.price).where(Product.id == product_id))
        if price is None:
            raise NotFound(f"Product {product_id} not found")
        return Decimal(price)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def decrease_stock(self, product_id: int, amount: int) -> None:
        """Take ``amount`` units out of stock, or fail without touching the row."""
        _require_positive(amount)

        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= amount)
            .values(stock=Product.stock - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self._expire(product_id)

        if result.rowcount == 0:
            available = self.get_stock(product_id)  # Raises NotFound for unknown products
            logger.warning(
                "Stock decrease refused",
                product_id=product_id,
                requested=amount,
                available=available,
            )
            raise InsufficientStock(product_id, requested=amount, available=available)

        logger.debug("Stock decreased", product_id=product_id, amount=amount)

    def restock(self, product_id: int, amount: int) -> None:
        """Return ``amount`` previously reserved units to stock."""
        _require_positive(amount)

        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self._expire(product_id)

        if result.rowcount == 0:
            raise NotFound(f"Product {product_id} not found")

        logger.debug("Stock restored", product_id=product_id, amount=amount)

    def _expire(self, product_id: int) -> None:
        # Rows already loaded in this session no longer reflect the table
        for instance in list(self.session.identity_map.values()):
            if isinstance(instance, Product) and instance.id == product_id:
                self.session.expire(instance)
