"""
Simulation configuration.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SimulationConfig(BaseModel):
    """
    Recognized run options.

    Defaults reproduce the classic game: twelve months of sixty one-second
    ticks, 10k starting cash, two or three forced news events per month.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Timeline
    months: int = Field(12, ge=1, le=12)
    ticks_per_month: int = Field(60, ge=2)

    # Player
    starting_cash: float = Field(10_000.0, ge=0)

    # Random walk (uniform draw in [-walk_down, walk_up])
    walk_up: float = Field(5.0, ge=0)
    walk_down: float = Field(5.0, ge=0)

    # News cadence
    news_interval_ticks: int = Field(5, ge=1)
    news_probability: float = Field(0.25, ge=0, le=1)
    min_news_per_month: int = Field(2, ge=1)
    max_news_per_month: int = Field(3, ge=1)
    fan_out_probability: float = Field(0.5, ge=0, le=1)

    # News impact
    impact_duration_ticks: int = Field(15, ge=1)
    impact_delay_ticks: int = Field(10, ge=0)
    impact_magnitude_unit: float = Field(0.20, ge=0)
    impact_tiers: int = Field(5, ge=1)

    # Retention
    price_history_length: int = Field(200, ge=1)
    news_feed_length: int = Field(500, ge=1)
    market_log_length: int = Field(500, ge=1)

    seed: Optional[int] = None

    @model_validator(mode="after")
    def _check_news_range(self) -> "SimulationConfig":
        if self.min_news_per_month > self.max_news_per_month:
            raise ValueError("min_news_per_month must not exceed max_news_per_month")
        # Offsets are drawn without replacement from 1..ticks_per_month-1
        if self.max_news_per_month > self.ticks_per_month - 1:
            raise ValueError("max_news_per_month must be below ticks_per_month")
        return self

    @property
    def total_ticks(self) -> int:
        return self.months * self.ticks_per_month
