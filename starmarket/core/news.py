"""
News events: headline, anchor security, optional group fan-out and a
delayed price impact handed to the scheduler.
"""
from collections import deque
from typing import Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Set
import logging

import numpy as np

from .config import SimulationConfig
from .impact_scheduler import ImpactScheduler
from .security import Security
from .types import NewsRecord

logger = logging.getLogger(__name__)

class NewsGroups:
    """
    Correlated security clusters.

    Stored one-directional (anchor -> members) but resolved symmetrically:
    every member of a cluster sees the other members as affiliates.
    """

    def __init__(self, groups: Mapping[str, Iterable[str]]):
        self.groups: Dict[str, tuple] = {anchor: tuple(members) for anchor, members in groups.items()}
        self._affiliates: Dict[str, Set[str]] = {}
        for anchor, members in self.groups.items():
            cluster = {anchor, *members}
            for security_id in cluster:
                self._affiliates.setdefault(security_id, set()).update(cluster - {security_id})

    def affiliates(self, security_id: str) -> List[str]:
        """Other securities correlated with `security_id` (sorted)"""
        return sorted(self._affiliates.get(security_id, ()))

    def has_group(self, security_id: str) -> bool:
        return bool(self._affiliates.get(security_id))

class NewsGenerator:
    """
    Fires news and schedules the resulting impacts.

    Magnitude policy: all impacted securities move in the same direction
    and tier; each total delta is scaled by that security's own price.
    """

    def __init__(
        self,
        securities: Mapping[str, Security],
        scheduler: ImpactScheduler,
        headlines: Sequence[str],
        groups: NewsGroups,
        config: SimulationConfig
    ):
        if not headlines:
            raise ValueError("At least one headline is required")
        self.securities = securities
        self.scheduler = scheduler
        self.headlines = list(headlines)
        self.groups = groups
        self.config = config

        self.feed: Deque[NewsRecord] = deque(maxlen=config.news_feed_length)
        self.news_fired = 0

    def maybe_fire_news(self, rng: np.random.Generator, month: int, tick: int) -> Optional[NewsRecord]:
        """Periodic check: fire with the configured probability"""
        if rng.random() >= self.config.news_probability:
            return None
        return self.fire_news(rng, month, tick)

    def fire_news(
        self,
        rng: np.random.Generator,
        month: int,
        tick: int,
        forced: bool = False
    ) -> Optional[NewsRecord]:
        """Publish one news event. Returns None once impacts are suppressed."""
        if self.scheduler.closed:
            return None

        cfg = self.config
        ids = list(self.securities)
        headline = self.headlines[int(rng.integers(len(self.headlines)))]
        anchor_id = ids[int(rng.integers(len(ids)))]

        # Fan-out silently falls back to the anchor alone without a group
        use_group = rng.random() < cfg.fan_out_probability
        impacted = [anchor_id]
        if use_group and self.groups.has_group(anchor_id):
            impacted.extend(self.groups.affiliates(anchor_id))

        tier = int(rng.integers(1, cfg.impact_tiers + 1))
        direction = 1 if rng.random() < 0.5 else -1

        for security_id in impacted:
            security = self.securities[security_id]
            total_delta = direction * tier * cfg.impact_magnitude_unit * security.price
            self.scheduler.schedule_impact(
                security_id,
                total_delta,
                cfg.impact_duration_ticks,
                cfg.impact_delay_ticks,
                tick,
            )

        record = NewsRecord(
            tick=tick,
            month=month,
            headline=headline,
            anchor_id=anchor_id,
            affected_security_ids=tuple(impacted),
            direction=direction,
            tier=tier,
            forced=forced,
        )
        self.feed.append(record)
        self.news_fired += 1

        logger.info(f"News at tick {tick}: {record.format()} [tier {tier}, {'+' if direction > 0 else '-'}]")
        return record

    def get_feed(self, count: Optional[int] = None) -> List[NewsRecord]:
        feed = list(self.feed)
        if count is not None:
            return feed[-count:] if count > 0 else []
        return feed
