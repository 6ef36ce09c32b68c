"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; nothing is shared
between users.
"""

from dataclasses import dataclass, field


@dataclass
class BasketState:
    """Tracks a single basket from creation to checkout."""

    basket_id: str | None = None
    lines: list[dict] = field(default_factory=list)
    total_price: int = 0


@dataclass
class OrderState:
    """Tracks a single order through payment."""

    order_id: str | None = None
    swish_id: str | None = None
    status: str = "NOT_ORDERED"
