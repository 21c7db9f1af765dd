"""
News-Driven Market Simulation Engine

A tick-driven market of synthetic securities whose random-walk prices are
pushed around by delayed, multi-step news impacts, with a player portfolio
trading against them.
"""

__version__ = "1.0.0"

from .core.config import SimulationConfig
from .core.types import (
    ClockState, NewsRecord, TradeRecord, MarketLogEntry, RunSummary,
    RunStatus, Side, TickEvent, NewsEvent, TradeEvent, RunEndedEvent
)
from .core.errors import (
    TradeError, InvalidQuantity, InsufficientFunds, InsufficientShares,
    NoPosition, NoSelection, UnknownSecurity, RunEnded
)
from .core.security import Security
from .core.impact_scheduler import ImpactScheduler
from .core.news import NewsGenerator, NewsGroups
from .core.portfolio import Portfolio
from .core.clock import Clock
from .simulation import MarketSimulation
from .time_engine import AsyncTickDriver
from .streaming.event_stream import BoundedEventStream

__all__ = [
    "SimulationConfig",
    "ClockState",
    "NewsRecord",
    "TradeRecord",
    "MarketLogEntry",
    "RunSummary",
    "RunStatus",
    "Side",
    "TickEvent",
    "NewsEvent",
    "TradeEvent",
    "RunEndedEvent",
    "TradeError",
    "InvalidQuantity",
    "InsufficientFunds",
    "InsufficientShares",
    "NoPosition",
    "NoSelection",
    "UnknownSecurity",
    "RunEnded",
    "Security",
    "ImpactScheduler",
    "NewsGenerator",
    "NewsGroups",
    "Portfolio",
    "Clock",
    "MarketSimulation",
    "AsyncTickDriver",
    "BoundedEventStream"
]
