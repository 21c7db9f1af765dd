"""
Core simulation components.
"""

from .config import SimulationConfig
from .clock import Clock
from .security import Security
from .impact_scheduler import ImpactScheduler, PendingImpact
from .news import NewsGenerator, NewsGroups
from .portfolio import Portfolio, parse_quantity

__all__ = [
    "SimulationConfig",
    "Clock",
    "Security",
    "ImpactScheduler",
    "PendingImpact",
    "NewsGenerator",
    "NewsGroups",
    "Portfolio",
    "parse_quantity"
]
