"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state: no cross-user sharing.
State tracks ids returned by the API so follow-up requests can use them.
"""

from dataclasses import dataclass, field


@dataclass
class ShopperState:
    """Tracks one simulated shopper's cart and orders."""

    user_id: int
    line_ids: list[int] = field(default_factory=list)
    reserved_units: int = 0
    order_ids: list[int] = field(default_factory=list)
    stock_refusals: int = 0

    @property
    def headers(self) -> dict[str, str]:
        return {"X-User-Id": str(self.user_id)}
