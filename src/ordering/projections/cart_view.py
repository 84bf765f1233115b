"""Cart view: current cart state for UI rendering."""

from dataclasses import asdict, dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from ordering.cart.cart import Cart, CartRepository
from shared.exceptions import Conflict
from shared.identity import UserIdentity
from shared.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class CartLineView:
    line_id: int
    product_id: int
    name: str
    price: Decimal
    quantity: int
    subtotal: Decimal


@dataclass(frozen=True)
class CartView:
    cart_id: int
    lines: list[CartLineView] = field(default_factory=list)
    total: Decimal = Decimal("0.00")

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> dict:
        return asdict(self)


def build_cart_view(session: Session, cart: Cart) -> CartView:
    """Render a cart from the rows visible to ``session``."""
    lines = [
        CartLineView(
            line_id=line.id,
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=line.quantity,
            subtotal=product.price * line.quantity,
        )
        for line, product in CartRepository(session).lines(cart.id)
    ]
    return CartView(
        cart_id=cart.id,
        lines=lines,
        total=sum((line.subtotal for line in lines), Decimal("0.00")),
    )


def get_cart(session_factory: sessionmaker, identity: UserIdentity) -> CartView:
    """The caller's cart, created empty on first access."""
    try:
        return _load_cart(session_factory, identity)
    except Conflict:
        # Another request created the cart between our lookup and insert
        return _load_cart(session_factory, identity)


def _load_cart(session_factory: sessionmaker, identity: UserIdentity) -> CartView:
    with UnitOfWork(session_factory) as uow:
        cart = CartRepository(uow.session).get_or_create(identity.user_id)
        view = build_cart_view(uow.session, cart)
        uow.commit()
    return view
