"""
Delayed, multi-step price impacts.

Every in-flight impact lives in one schedule keyed by absolute fire tick,
swept once per tick. Impacts on the same security never merge; each one
fires its own steps.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple
import itertools
import logging

from sortedcontainers import SortedDict

from .security import Security

logger = logging.getLogger(__name__)

@dataclass
class PendingImpact:
    """In-flight scheduled mutation of one security"""
    security_id: str
    step_delta: float
    ticks_remaining: int
    next_fire_tick: int
    impact_id: int = field(default=0, compare=False)

    def ticks_until_start(self, now: int) -> int:
        return max(self.next_fire_tick - now - 1, 0)

@dataclass
class SchedulerStats:
    """Scheduler counters"""
    impacts_scheduled: int = 0
    impacts_completed: int = 0
    steps_applied: int = 0
    impacts_rejected: int = 0
    pending: int = 0

class ImpactScheduler:
    """
    Spreads a total price delta over future ticks after a delay.

    Schedule: fire_tick -> list of PendingImpact due at that tick.
    """

    def __init__(self, securities: Mapping[str, Security]):
        self.securities = securities
        self._schedule: SortedDict = SortedDict()
        self._ids = itertools.count(1)
        self._closed = False
        self.stats = SchedulerStats()

    # ========================================================================
    # SCHEDULING
    # ========================================================================

    def schedule_impact(
        self,
        security_id: str,
        total_delta: float,
        duration_ticks: int,
        delay_ticks: int,
        now: int
    ) -> bool:
        """
        Schedule `total_delta` in `duration_ticks` equal steps, the i-th
        (1-based) firing at `now + delay_ticks + i`.
        Returns False once the scheduler has been closed.
        """
        if self._closed:
            self.stats.impacts_rejected += 1
            logger.debug(f"Impact on {security_id} suppressed: scheduler closed")
            return False
        if duration_ticks < 1:
            raise ValueError("duration_ticks must be at least 1")
        if delay_ticks < 0:
            raise ValueError("delay_ticks must not be negative")
        if security_id not in self.securities:
            raise ValueError(f"Unknown security: {security_id}")

        impact = PendingImpact(
            security_id=security_id,
            step_delta=total_delta / duration_ticks,
            ticks_remaining=duration_ticks,
            next_fire_tick=now + delay_ticks + 1,
            impact_id=next(self._ids),
        )
        self._file(impact)
        self.stats.impacts_scheduled += 1

        logger.debug(
            f"Scheduled impact #{impact.impact_id} on {security_id}: "
            f"total={total_delta:+.2f} over {duration_ticks} ticks from tick {impact.next_fire_tick}"
        )
        return True

    def _file(self, impact: PendingImpact):
        bucket = self._schedule.get(impact.next_fire_tick)
        if bucket is None:
            self._schedule[impact.next_fire_tick] = [impact]
        else:
            bucket.append(impact)

    # ========================================================================
    # TICK PROCESSING
    # ========================================================================

    def on_tick(self, tick: int) -> List[Tuple[str, float]]:
        """
        Fire every step due at or before `tick`.
        Returns the (security_id, step_delta) pairs applied, in firing order.
        """
        applied: List[Tuple[str, float]] = []
        due_ticks = list(self._schedule.irange(maximum=tick))

        for fire_tick in due_ticks:
            for impact in self._schedule.pop(fire_tick):
                self.securities[impact.security_id].apply_impact_step(impact.step_delta, tick)
                applied.append((impact.security_id, impact.step_delta))
                self.stats.steps_applied += 1

                impact.ticks_remaining -= 1
                if impact.ticks_remaining > 0:
                    impact.next_fire_tick = tick + 1
                    self._file(impact)
                else:
                    self.stats.impacts_completed += 1
                    logger.debug(f"Impact #{impact.impact_id} on {impact.security_id} completed")

        return applied

    def close(self):
        """Suppress all future scheduling. In-flight impacts are left in place."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    # ========================================================================
    # QUERIES
    # ========================================================================

    @property
    def pending_count(self) -> int:
        return sum(len(bucket) for bucket in self._schedule.values())

    def pending_for(self, security_id: str) -> List[PendingImpact]:
        """In-flight impacts targeting one security"""
        return [
            impact
            for bucket in self._schedule.values()
            for impact in bucket
            if impact.security_id == security_id
        ]

    def pending_by_security(self) -> Dict[str, float]:
        """Total not-yet-applied delta per security"""
        totals: Dict[str, float] = {}
        for bucket in self._schedule.values():
            for impact in bucket:
                remaining = impact.step_delta * impact.ticks_remaining
                totals[impact.security_id] = totals.get(impact.security_id, 0.0) + remaining
        return totals

    def get_stats(self) -> SchedulerStats:
        self.stats.pending = self.pending_count
        return self.stats
