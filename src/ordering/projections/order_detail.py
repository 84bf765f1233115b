"""Order detail: placed orders with their lines, as shown to the customer."""

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import sessionmaker

from ordering.order.order import Order, OrderLine, OrderRepository
from shared.identity import UserIdentity


@dataclass(frozen=True)
class OrderLineView:
    product_id: int
    name: str
    price: Decimal
    quantity: int
    subtotal: Decimal


@dataclass(frozen=True)
class OrderView:
    order_id: int
    status: str
    shipping_address: str
    created_at: datetime
    total: Decimal
    lines: list[OrderLineView] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def build_order_view(order: Order, lines: list[OrderLine]) -> OrderView:
    return OrderView(
        order_id=order.id,
        status=order.status,
        shipping_address=order.shipping_address,
        created_at=order.created_at,
        total=order.total_amount,
        lines=[
            OrderLineView(
                product_id=line.product_id,
                name=line.product_name,
                price=line.price,
                quantity=line.quantity,
                subtotal=line.subtotal,
            )
            for line in lines
        ],
    )


def list_orders(session_factory: sessionmaker, identity: UserIdentity) -> list[OrderView]:
    """The caller's orders, newest first, each with its lines."""
    with session_factory() as session:
        repo = OrderRepository(session)
        orders = repo.list_for_user(identity.user_id)

        lines_by_order = defaultdict(list)
        for line in repo.lines([order.id for order in orders]):
            lines_by_order[line.order_id].append(line)

        return [build_order_view(order, lines_by_order[order.id]) for order in orders]


def get_order(session_factory: sessionmaker, identity: UserIdentity, order_id: int) -> OrderView:
    with session_factory() as session:
        repo = OrderRepository(session)
        order = repo.get_for_user(identity.user_id, order_id)
        return build_order_view(order, repo.lines([order.id]))
