"""Cart item management: commands and handler."""

from dataclasses import dataclass

from sqlalchemy.orm import sessionmaker

from inventory.stock.ledger import StockLedger
from ordering.cart.cart import CartRepository
from ordering.domain import logger
from ordering.projections.cart_view import CartView, build_cart_view
from shared.config import Settings, get_settings
from shared.exceptions import InsufficientStock, NotFound, ValidationError
from shared.identity import UserIdentity
from shared.unit_of_work import UnitOfWork


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class AddToCart:
    product_id: int
    quantity: int

    def __post_init__(self):
        errors = {}
        if not _is_positive_int(self.product_id):
            errors["product_id"] = ["Product id must be a positive integer"]
        if not _is_positive_int(self.quantity):
            errors["quantity"] = ["Quantity must be a positive integer"]
        if errors:
            raise ValidationError(errors)


@dataclass(frozen=True)
class RemoveFromCart:
    line_id: int

    def __post_init__(self):
        if not _is_positive_int(self.line_id):
            raise ValidationError({"line_id": ["Line id must be a positive integer"]})


class ManageCartItemsHandler:
    def __init__(self, session_factory: sessionmaker, settings: Settings | None = None):
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    def add_to_cart(self, identity: UserIdentity, command: AddToCart) -> CartView:
        """Reserve ``command.quantity`` units and put them in the caller's cart.

        A product already in the cart grows its line. The requested total must
        fit within the stock read at the start of the call, and only the newly
        added units are taken from the ledger.
        """
        with UnitOfWork(self.session_factory) as uow:
            carts = CartRepository(uow.session)
            ledger = StockLedger(uow.session)

            cart = carts.get_or_create(identity.user_id)
            line = carts.find_line(cart.id, command.product_id, for_update=True)
            available = ledger.get_stock(command.product_id)

            new_quantity = command.quantity if line is None else line.quantity + command.quantity
            if new_quantity > available:
                logger.info(
                    "Cart line rejected",
                    user_id=identity.user_id,
                    product_id=command.product_id,
                    requested=new_quantity,
                    available=available,
                )
                raise InsufficientStock(command.product_id, requested=new_quantity, available=available)

            if line is None:
                line = carts.add_line(cart.id, command.product_id, command.quantity)
            else:
                new_quantity = carts.increase_quantity(line, command.quantity)

            ledger.decrease_stock(command.product_id, command.quantity)
            carts.touch(cart)

            view = build_cart_view(uow.session, cart)
            uow.commit()

        logger.info(
            "Cart line added",
            user_id=identity.user_id,
            cart_id=cart.id,
            line_id=line.id,
            product_id=command.product_id,
            quantity=new_quantity,
        )
        return view

    def remove_from_cart(self, identity: UserIdentity, command: RemoveFromCart) -> CartView:
        """Delete one of the caller's cart lines.

        Units stay out of stock unless ``restock_on_remove`` is enabled, in
        which case they are returned in the same transaction.
        """
        with UnitOfWork(self.session_factory) as uow:
            carts = CartRepository(uow.session)

            cart = carts.find_by_user(identity.user_id)
            if cart is None:
                raise NotFound(f"Cart line {command.line_id} not found")

            line = carts.get_line(cart.id, command.line_id)
            product_id, quantity = line.product_id, line.quantity
            carts.delete_line(line)

            if self.settings.restock_on_remove:
                StockLedger(uow.session).restock(product_id, quantity)

            carts.touch(cart)
            view = build_cart_view(uow.session, cart)
            uow.commit()

        logger.info(
            "Cart line removed",
            user_id=identity.user_id,
            cart_id=cart.id,
            line_id=command.line_id,
            product_id=product_id,
            restocked=self.settings.restock_on_remove,
        )
        return view
