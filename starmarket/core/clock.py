"""
Simulated clock: one tick per simulated second, twelve months per run.
The state is replaced, never mutated, on every tick.
"""
from typing import FrozenSet, Set
import logging

import numpy as np

from .config import SimulationConfig
from .errors import RunEnded
from .types import ClockState, ClockTick

logger = logging.getLogger(__name__)

class Clock:
    """
    Tick counter with month boundaries and monthly news triggers.

    The only randomness is the trigger set drawn at each month start.
    """

    def __init__(self, config: SimulationConfig, rng: np.random.Generator):
        self.config = config
        self.rng = rng
        self.state = ClockState(
            tick_index=0,
            month_index=0,
            ticks_left_in_month=config.ticks_per_month,
            ticks_left_total=config.total_ticks,
        )
        self.ended = False
        self._news_triggers: Set[int] = set()
        self.regenerate_triggers()

    @property
    def news_triggers(self) -> FrozenSet[int]:
        """Pending trigger offsets within the current month"""
        return frozenset(self._news_triggers)

    def regenerate_triggers(self) -> FrozenSet[int]:
        """Draw this month's forced news offsets (without replacement)"""
        cfg = self.config
        count = int(self.rng.integers(cfg.min_news_per_month, cfg.max_news_per_month + 1))
        offsets = self.rng.choice(
            np.arange(1, cfg.ticks_per_month), size=count, replace=False
        )
        self._news_triggers = {int(o) for o in offsets}
        logger.debug(
            f"News triggers for month {self.state.month_index}: {sorted(self._news_triggers)}"
        )
        return self.news_triggers

    def tick(self) -> ClockTick:
        """Advance one tick"""
        if self.ended:
            raise RunEnded("The clock has already run out")

        cfg = self.config
        prev = self.state
        tick_index = prev.tick_index + 1
        ticks_left_total = prev.ticks_left_total - 1
        ticks_left_in_month = prev.ticks_left_in_month - 1
        month_index = prev.month_index

        offset = cfg.ticks_per_month - ticks_left_in_month
        news_triggered = offset in self._news_triggers
        if news_triggered:
            self._news_triggers.discard(offset)

        month_changed = False
        run_ended = False
        if ticks_left_in_month <= 0:
            if month_index + 1 >= cfg.months:
                run_ended = True
                ticks_left_in_month = 0
            else:
                month_index += 1
                ticks_left_in_month = cfg.ticks_per_month
                month_changed = True

        if ticks_left_total <= 0:
            run_ended = True

        self.state = ClockState(
            tick_index=tick_index,
            month_index=month_index,
            ticks_left_in_month=ticks_left_in_month,
            ticks_left_total=max(ticks_left_total, 0),
        )

        if run_ended:
            self.ended = True
            self._news_triggers.clear()
            logger.info(f"Clock ran out at tick {tick_index}")
        elif month_changed:
            self.regenerate_triggers()
            logger.info(f"Month advanced to {self.state.month_name}")

        return ClockTick(
            state=self.state,
            news_triggered=news_triggered,
            month_changed=month_changed,
            run_ended=run_ended,
        )
