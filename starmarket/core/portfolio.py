"""
Player portfolio: cash, holdings and trade validation.
A command either fully succeeds or leaves the portfolio untouched.
"""
from typing import Dict, Mapping, Union
import logging

from .errors import InsufficientFunds, InsufficientShares, InvalidQuantity, NoPosition
from .security import Security
from .types import Side, TradeRecord, format_money

logger = logging.getLogger(__name__)

BUY_MAX = "max"
SELL_ALL = "all"

# Longer digit strings are rejected before int() conversion
MAX_QUANTITY_DIGITS = 18

Quantity = Union[int, str]

def parse_quantity(quantity: Quantity, keyword: str) -> Union[int, str]:
    """
    Normalize a requested share count.

    Accepts a positive int, a string of digits (as typed into a shares
    field) or `keyword` ("max" / "all"). Returns the int or the keyword.
    """
    if isinstance(quantity, str):
        text = quantity.strip()
        if text.lower() == keyword:
            return keyword
        if not text.isdecimal() or len(text) > MAX_QUANTITY_DIGITS:
            raise InvalidQuantity(f"Invalid share amount: {quantity!r:.40}")
        shares = int(text)
    elif isinstance(quantity, int) and not isinstance(quantity, bool):
        shares = quantity
    else:
        raise InvalidQuantity(f"Invalid share amount: {quantity!r}")

    if shares <= 0:
        raise InvalidQuantity("Share amount must be positive")
    return shares

class Portfolio:
    """Cash balance plus per-security share counts"""

    def __init__(self, starting_cash: float):
        if starting_cash < 0:
            raise ValueError("starting_cash must not be negative")
        self.starting_cash = float(starting_cash)
        self.cash = float(starting_cash)
        self.holdings: Dict[str, int] = {}

        # Performance tracking
        self.total_trades = 0
        self.total_bought = 0.0
        self.total_sold = 0.0

    def shares_of(self, security_id: str) -> int:
        return self.holdings.get(security_id, 0)

    # ========================================================================
    # TRADING
    # ========================================================================

    def buy(self, security: Security, quantity: Quantity, tick: int = 0) -> TradeRecord:
        """Buy shares at the current price"""
        requested = parse_quantity(quantity, BUY_MAX)
        price = security.price

        if requested == BUY_MAX:
            shares = int(self.cash // price)
            # Guard float rounding so cost never exceeds cash
            while shares > 0 and shares * price > self.cash:
                shares -= 1
            if shares <= 0:
                raise InsufficientFunds(
                    f"Not enough cash to buy even 1 share of {security.security_id}"
                )
        else:
            shares = requested
            # Compared before multiplying so huge counts cannot overflow
            if shares > self.cash // price:
                raise InsufficientFunds(
                    f"Insufficient cash to buy that many shares of {security.security_id} "
                    f"(cash ${format_money(self.cash)}, price ${format_money(price)})"
                )

        cost = shares * price
        if cost > self.cash:
            raise InsufficientFunds(
                f"Insufficient cash to buy {shares} shares of {security.security_id} "
                f"(cost ${format_money(cost)}, cash ${format_money(self.cash)})"
            )

        self.cash -= cost
        self.holdings[security.security_id] = self.shares_of(security.security_id) + shares
        self.total_trades += 1
        self.total_bought += cost

        logger.debug(f"Bought {shares} {security.security_id} @ {price:.2f}, cash={self.cash:.2f}")
        return TradeRecord(
            tick=tick,
            side=Side.BUY,
            security_id=security.security_id,
            shares=shares,
            price=price,
            amount=cost,
            cash_after=self.cash,
        )

    def sell(self, security: Security, quantity: Quantity, tick: int = 0) -> TradeRecord:
        """Sell shares at the current price"""
        owned = self.shares_of(security.security_id)
        if owned <= 0:
            raise NoPosition(f"You own 0 shares of {security.security_id}")

        requested = parse_quantity(quantity, SELL_ALL)
        shares = owned if requested == SELL_ALL else requested
        if shares > owned:
            raise InsufficientShares(
                f"You only own {owned} shares of {security.security_id}"
            )

        price = security.price
        revenue = shares * price
        self.cash += revenue
        remaining = owned - shares
        if remaining:
            self.holdings[security.security_id] = remaining
        else:
            del self.holdings[security.security_id]
        self.total_trades += 1
        self.total_sold += revenue

        logger.debug(f"Sold {shares} {security.security_id} @ {price:.2f}, cash={self.cash:.2f}")
        return TradeRecord(
            tick=tick,
            side=Side.SELL,
            security_id=security.security_id,
            shares=shares,
            price=price,
            amount=revenue,
            cash_after=self.cash,
        )

    # ========================================================================
    # VALUATION
    # ========================================================================

    def invested_value(self, securities: Mapping[str, Security]) -> float:
        """Mark-to-market value of all holdings"""
        return sum(
            shares * securities[security_id].price
            for security_id, shares in self.holdings.items()
        )

    def net_worth(self, securities: Mapping[str, Security]) -> float:
        return self.cash + self.invested_value(securities)

    def get_stats(self, securities: Mapping[str, Security]) -> dict:
        """Portfolio snapshot"""
        return {
            'cash': self.cash,
            'holdings': dict(self.holdings),
            'invested': self.invested_value(securities),
            'net_worth': self.net_worth(securities),
            'starting_cash': self.starting_cash,
            'total_trades': self.total_trades,
        }
