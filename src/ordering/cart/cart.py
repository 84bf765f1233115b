"""Shopping Cart: one persistent cart per user and the lines it holds.

A cart line is a reservation: its quantity has already been taken out of the
product's stock. Lines are unique per (cart, product); adding a product that
is already in the cart grows the existing line.
"""

from datetime import datetime

import structlog
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
    delete,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from inventory.stock.stock import Product
from shared.exceptions import Conflict, NotFound
from shared.utils.db import Base, utcnow

logger = structlog.get_logger(__name__)


class Cart(Base):
    __tablename__ = "carts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<Cart id={self.id} user_id={self.user_id}>"


class CartLine(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    cart_id: Mapped[int] = mapped_column(ForeignKey("carts.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"))
    quantity: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<CartLine id={self.id} cart_id={self.cart_id} product_id={self.product_id} quantity={self.quantity}>"


class CartRepository:
    """Cart and cart line persistence, bound to one unit of work's session.

    Every mutating method flushes, so reads issued later in the same unit of
    work see the change.
    """

    def __init__(self, session: Session):
        self.session = session

    # -------------------------------------------------------------------
    # Carts
    # -------------------------------------------------------------------
    def find_by_user(self, user_id: int) -> Cart | None:
        return self.session.scalars(select(Cart).where(Cart.user_id == user_id)).one_or_none()

    def get_or_create(self, user_id: int) -> Cart:
        cart = self.find_by_user(user_id)
        if cart is not None:
            return cart

        cart = Cart(user_id=user_id)
        self.session.add(cart)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # Another request created this user's cart after our lookup
            logger.warning("Concurrent cart creation", user_id=user_id)
            raise Conflict(f"Cart for user {user_id} was created concurrently") from exc

        logger.info("Cart created", cart_id=cart.id, user_id=user_id)
        return cart

    def touch(self, cart: Cart) -> None:
        cart.updated_at = utcnow()
        self.session.flush()

    # -------------------------------------------------------------------
    # Lines
    # -------------------------------------------------------------------
    def find_line(self, cart_id: int, product_id: int, for_update: bool = False) -> CartLine | None:
        stmt = select(CartLine).where(CartLine.cart_id == cart_id, CartLine.product_id == product_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.scalars(stmt).one_or_none()

    def get_line(self, cart_id: int, line_id: int) -> CartLine:
        """Load a line of this cart. Lines of other carts are reported as missing."""
        line = self.session.scalars(
            select(CartLine).where(CartLine.id == line_id, CartLine.cart_id == cart_id)
        ).one_or_none()
        if line is None:
            raise NotFound(f"Cart line {line_id} not found")
        return line

    def add_line(self, cart_id: int, product_id: int, quantity: int) -> CartLine:
        line = CartLine(cart_id=cart_id, product_id=product_id, quantity=quantity)
        self.session.add(line)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # Another request put this product in the cart after our lookup
            logger.warning("Concurrent cart line creation", cart_id=cart_id, product_id=product_id)
            raise Conflict(f"Product {product_id} was added to cart {cart_id} concurrently") from exc
        return line

    def increase_quantity(self, line: CartLine, amount: int) -> int:
        """Grow the line by ``amount`` in one statement and return its new quantity.

        The increment is applied by the database, so concurrent re-adds of the
        same product never overwrite each other's units.
        """
        result = self.session.execute(
            update(CartLine)
            .where(CartLine.id == line.id)
            .values(quantity=CartLine.quantity + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise Conflict(f"Cart line {line.id} was removed concurrently")

        self.session.refresh(line)
        return line.quantity

    def delete_line(self, line: CartLine) -> None:
        self.session.delete(line)
        self.session.flush()

    def clear(self, cart_id: int) -> int:
        """Delete every line of the cart and return how many were removed."""
        result = self.session.execute(
            delete(CartLine).where(CartLine.cart_id == cart_id).execution_options(synchronize_session=False)
        )
        return result.rowcount

    def lines(self, cart_id: int) -> list[tuple[CartLine, Product]]:
        """The cart's lines with their products, in the order they were added."""
        rows = self.session.execute(
            select(CartLine, Product)
            .join(Product, Product.id == CartLine.product_id)
            .where(CartLine.cart_id == cart_id)
            .order_by(CartLine.id)
        )
        return [(line, product) for line, product in rows]
