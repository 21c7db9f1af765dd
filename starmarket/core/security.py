"""
Tradable security with a floor-clamped random-walk price.
"""
from collections import deque
from typing import Deque, List, Optional

import numpy as np

from .types import PricePoint, format_movement

PRICE_FLOOR = 1.0

class Security:
    """
    Single instrument.

    Both price paths (random walk and scheduled impact) go through
    `_set_price`, which owns clamping, delta tracking and history.
    """

    def __init__(
        self,
        security_id: str,
        price: float,
        description: str = "",
        history_length: int = 200
    ):
        self.security_id = security_id
        self.description = description
        self.price = max(float(price), PRICE_FLOOR)
        self.initial_price = self.price
        self.last_delta = 0.0

        # Rolling window for charting (oldest evicted)
        self.price_history: Deque[PricePoint] = deque(maxlen=history_length)
        self.price_history.append(PricePoint(tick=0, price=self.price))

    # ========================================================================
    # PRICE MUTATION
    # ========================================================================

    def advance(self, rng: np.random.Generator, tick: int, walk_up: float = 5.0, walk_down: float = 5.0) -> float:
        """Apply one random-walk step drawn from [-walk_down, walk_up)"""
        move = float(rng.uniform(-walk_down, walk_up))
        return self._set_price(self.price + move, tick)

    def apply_impact_step(self, delta: float, tick: int) -> float:
        """Apply a deterministic delta from the impact scheduler"""
        return self._set_price(self.price + delta, tick)

    def _set_price(self, new_price: float, tick: int) -> float:
        old_price = self.price
        self.price = max(new_price, PRICE_FLOOR)
        self.last_delta = self.price - old_price
        self.price_history.append(PricePoint(tick=tick, price=self.price))
        return self.price

    # ========================================================================
    # DERIVED VALUES
    # ========================================================================

    @property
    def percent_change(self) -> float:
        return (self.price - self.initial_price) / self.initial_price * 100

    @property
    def movement(self) -> str:
        return format_movement(self.last_delta)

    def get_history(self, count: Optional[int] = None) -> List[PricePoint]:
        """Most recent price samples, oldest first"""
        history = list(self.price_history)
        if count is not None:
            return history[-count:] if count > 0 else []
        return history

    def to_dict(self) -> dict:
        return {
            'security_id': self.security_id,
            'description': self.description,
            'price': self.price,
            'initial_price': self.initial_price,
            'last_delta': self.last_delta,
            'movement': self.movement,
            'percent_change': self.percent_change,
        }

    def __repr__(self) -> str:
        return f"Security({self.security_id!r}, price={self.price:.2f})"
