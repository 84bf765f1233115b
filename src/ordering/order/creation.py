"""Order creation: command and handler."""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import sessionmaker

from inventory.stock.ledger import StockLedger
from ordering.cart.cart import CartRepository
from ordering.domain import logger
from ordering.order.order import Order, OrderLine, OrderRepository, OrderStatus
from ordering.projections.order_detail import OrderView, build_order_view
from shared.exceptions import EmptyCart, ValidationError
from shared.identity import UserIdentity
from shared.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class PlaceOrder:
    shipping_address: str

    def __post_init__(self):
        if not isinstance(self.shipping_address, str) or not self.shipping_address.strip():
            raise ValidationError({"shipping_address": ["Shipping address is required"]})
        object.__setattr__(self, "shipping_address", self.shipping_address.strip())


class PlaceOrderHandler:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def place_order(self, identity: UserIdentity, command: PlaceOrder) -> OrderView:
        """Turn the caller's cart into a pending order.

        1. Load the cart lines (EmptyCart when there are none)
        2. Lock each product row and snapshot its name and price
        3. Insert the order and its lines
        4. Empty the cart

        The lines' units were taken from stock when they were added to the
        cart, so no stock moves here. Any failure leaves the cart as it was.
        """
        with UnitOfWork(self.session_factory) as uow:
            carts = CartRepository(uow.session)
            ledger = StockLedger(uow.session)
            orders = OrderRepository(uow.session)

            cart = carts.find_by_user(identity.user_id)
            cart_lines = carts.lines(cart.id) if cart is not None else []
            if not cart_lines:
                raise EmptyCart()

            snapshots = []
            for line, _ in cart_lines:
                product = ledger.get_product(line.product_id, for_update=True)
                snapshots.append((line, product.name, product.price))

            total = sum((price * line.quantity for line, _, price in snapshots), Decimal("0.00"))
            order = orders.add(
                Order(
                    user_id=identity.user_id,
                    total_amount=total,
                    status=OrderStatus.PENDING.value,
                    shipping_address=command.shipping_address,
                )
            )
            order_lines = [
                orders.add_line(
                    OrderLine(
                        order_id=order.id,
                        product_id=line.product_id,
                        product_name=name,
                        quantity=line.quantity,
                        price=price,
                        subtotal=price * line.quantity,
                    )
                )
                for line, name, price in snapshots
            ]

            carts.clear(cart.id)
            carts.touch(cart)

            view = build_order_view(order, order_lines)
            uow.commit()

        logger.info(
            "Order placed",
            user_id=identity.user_id,
            order_id=order.id,
            line_count=len(order_lines),
            total=str(total),
        )
        return view
