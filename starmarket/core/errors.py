"""
Trade command errors.
All of them are recoverable: the engine reports them and keeps running.
"""


class TradeError(Exception):
    """Base class for rejected player commands"""

    code = "trade_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidQuantity(TradeError):
    """Share count is not a positive integer"""
    code = "invalid_quantity"


class InsufficientFunds(TradeError):
    """Buy cost exceeds available cash"""
    code = "insufficient_funds"


class InsufficientShares(TradeError):
    """Sell count exceeds the current holding"""
    code = "insufficient_shares"


class NoPosition(TradeError):
    """Sell issued with zero holding"""
    code = "no_position"


class NoSelection(TradeError):
    """Command issued without a target security"""
    code = "no_selection"


class UnknownSecurity(TradeError):
    """Target security does not exist in this run"""
    code = "unknown_security"


class RunEnded(TradeError):
    """Command issued after the simulation reached its terminal state"""
    code = "run_ended"
