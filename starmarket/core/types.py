"""
Domain models for the market simulation.
Records and events are immutable so they can be handed to subscribers safely.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# ============================================================================
# ENUMS
# ============================================================================

class Side(Enum):
    BUY = "BUY"
    SELL = "SELL"

class RunStatus(Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    ENDED = "ENDED"

class LogLevel(Enum):
    INFO = "INFO"
    TRADE = "TRADE"
    REJECTED = "REJECTED"

# ============================================================================
# CORE MODELS (Immutable)
# ============================================================================

@dataclass(frozen=True)
class PricePoint:
    """One charting sample of a security price"""
    tick: int
    price: float

@dataclass(frozen=True)
class Listing:
    """Static description of a tradable security"""
    security_id: str
    description: str
    min_price: float
    max_price: float

@dataclass(frozen=True)
class ClockState:
    """Simulated time after a tick"""
    tick_index: int
    month_index: int
    ticks_left_in_month: int
    ticks_left_total: int

    @property
    def month_name(self) -> str:
        return month_name(self.month_index)

    @property
    def time_left_label(self) -> str:
        """Countdown formatted as MM:SS"""
        minutes, seconds = divmod(max(self.ticks_left_total, 0), 60)
        return f"{minutes:02d}:{seconds:02d}"

@dataclass(frozen=True)
class ClockTick:
    """Result of advancing the clock by one tick"""
    state: ClockState
    news_triggered: bool = False
    month_changed: bool = False
    run_ended: bool = False

@dataclass(frozen=True)
class NewsRecord:
    """News-feed entry for the presentation layer"""
    tick: int
    month: int
    headline: str
    anchor_id: str
    affected_security_ids: Tuple[str, ...]
    direction: int  # +1 or -1
    tier: int
    forced: bool = False

    @property
    def month_name(self) -> str:
        return month_name(self.month)

    def format(self) -> str:
        affected = ", ".join(self.affected_security_ids)
        return f"[{self.month_name}] {self.headline} (Affects {affected})"

@dataclass(frozen=True)
class TradeRecord:
    """Executed buy or sell"""
    tick: int
    side: Side
    security_id: str
    shares: int
    price: float
    amount: float
    cash_after: float

@dataclass(frozen=True)
class MarketLogEntry:
    """Line of the market log"""
    tick: int
    level: LogLevel
    message: str

@dataclass(frozen=True)
class RunSummary:
    """Final figures exposed once the run has ended"""
    final_net_worth: float
    starting_cash: float
    profit_loss: float
    ticks_elapsed: int

# ============================================================================
# EVENT MODELS
# ============================================================================

@dataclass(frozen=True)
class EngineEvent:
    """Base event class"""
    tick: int

@dataclass(frozen=True)
class TickEvent(EngineEvent):
    """Emitted after every completed tick"""
    clock: ClockState
    net_worth: float
    news: Tuple[NewsRecord, ...] = field(default_factory=tuple)
    impacts_applied: int = 0

@dataclass(frozen=True)
class NewsEvent(EngineEvent):
    """News published"""
    record: NewsRecord

@dataclass(frozen=True)
class TradeEvent(EngineEvent):
    """Trade executed"""
    record: TradeRecord

@dataclass(frozen=True)
class RunEndedEvent(EngineEvent):
    """Terminal transition"""
    summary: RunSummary

# ============================================================================
# HELPERS
# ============================================================================

def month_name(index: int) -> str:
    if 0 <= index < len(MONTH_NAMES):
        return MONTH_NAMES[index]
    return "Unknown"

def format_money(amount: float) -> str:
    """Format a dollar amount like 12,345.67"""
    return f"{amount:,.2f}"

def format_movement(delta: Optional[float]) -> str:
    """Signed two-decimal price movement"""
    if not delta:
        return "0.00"
    if delta > 0:
        return f"+{delta:.2f}"
    return f"{delta:.2f}"
