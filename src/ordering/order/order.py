"""Order: an immutable snapshot of a cart at the moment it was placed.

Order lines copy the product name and unit price, so an order renders the
same way after the catalog changes.

State Machine:
    PENDING is the only state this core assigns. Payment, fulfillment and
    cancellation move orders on from there and live elsewhere.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from shared.exceptions import NotFound
from shared.utils.db import Base, utcnow


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------
class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (CheckConstraint("total_amount >= 0", name="total_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    status: Mapped[str] = mapped_column(String(32), default=OrderStatus.PENDING.value)
    shipping_address: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Order id={self.id} user_id={self.user_id} total={self.total_amount} status={self.status}>"


class OrderLine(Base):
    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"))
    product_name: Mapped[str] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------
class OrderRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, order: Order) -> Order:
        self.session.add(order)
        self.session.flush()
        return order

    def add_line(self, line: OrderLine) -> OrderLine:
        self.session.add(line)
        self.session.flush()
        return line

    def get_for_user(self, user_id: int, order_id: int) -> Order:
        """Load one of the user's orders. Other users' orders are reported as missing."""
        order = self.session.scalars(
            select(Order).where(Order.id == order_id, Order.user_id == user_id)
        ).one_or_none()
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        return order

    def list_for_user(self, user_id: int) -> list[Order]:
        """The user's orders, newest first."""
        return list(
            self.session.scalars(
                select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
            )
        )

    def lines(self, order_ids: list[int]) -> list[OrderLine]:
        if not order_ids:
            return []
        return list(
            self.session.scalars(
                select(OrderLine).where(OrderLine.order_id.in_(order_ids)).order_by(OrderLine.order_id, OrderLine.id)
            )
        )
