"""
Async tick driver with pause/resume and speed control.
Ticks and trade commands run as whole units on one event loop.
"""
import asyncio
from dataclasses import dataclass
from typing import Optional
import logging

from .simulation import MarketSimulation
from .streaming.event_stream import BoundedEventStream
from .core.config import SimulationConfig
from .core.portfolio import Quantity
from .core.types import EngineEvent, RunStatus, RunSummary, TradeRecord

logger = logging.getLogger(__name__)

@dataclass
class DriverStats:
    """Performance metrics"""
    ticks_processed: int = 0
    trades_processed: int = 0
    trades_rejected: int = 0
    current_tick: int = 0

class AsyncTickDriver:
    """
    Drives a MarketSimulation in (accelerated) wall-clock time:
    - Pause/resume capability
    - Speed control (1x = one tick per `tick_seconds`, 0 = unlimited)
    - Engine events forwarded to a bounded stream

    Engine calls are synchronous and never await, so a trade command can
    never land in the middle of a tick.
    """

    def __init__(
        self,
        simulation: Optional[MarketSimulation] = None,
        stream: Optional[BoundedEventStream] = None,
        tick_seconds: float = 1.0,
        speed_multiplier: float = 1.0
    ):
        self.simulation = simulation or MarketSimulation()
        self.stream = stream or BoundedEventStream()
        self.tick_seconds = tick_seconds
        self.speed_multiplier = speed_multiplier

        # Control flags
        self._paused = asyncio.Event()
        self._paused.set()  # Start unpaused
        self._running = False

        self.stats = DriverStats()
        self.simulation.register_listener(EngineEvent, self.stream.publish_nowait)

    # ========================================================================
    # CONTROL METHODS
    # ========================================================================

    def start_run(self, config: Optional[SimulationConfig] = None, seed: Optional[int] = None):
        """Start (or restart) the underlying simulation"""
        if self.stream.closed:
            self.simulation.unregister_listener(EngineEvent, self.stream.publish_nowait)
            self.stream = BoundedEventStream(maxsize=self.stream.maxsize)
            self.simulation.register_listener(EngineEvent, self.stream.publish_nowait)
        self.simulation.start_run(config, seed)
        self.stats = DriverStats()

    def pause(self):
        """Pause ticking"""
        self._paused.clear()
        logger.info("Simulation paused")

    def resume(self):
        """Resume ticking"""
        self._paused.set()
        logger.info("Simulation resumed")

    @property
    def paused(self) -> bool:
        return not self._paused.is_set()

    def set_speed(self, multiplier: float):
        """
        Set simulation speed.
        - 1.0 = real-time
        - 10.0 = 10x speed
        - 0.0 = unlimited (no delays)
        """
        if multiplier < 0:
            raise ValueError("Speed multiplier must not be negative")
        self.speed_multiplier = multiplier
        logger.info(f"Speed set to {multiplier}x")

    def stop(self):
        """Stop after the current tick (also releases a paused loop)"""
        self._running = False
        self._paused.set()

    # ========================================================================
    # COMMANDS
    # ========================================================================

    def advance_tick(self):
        """Single manual step"""
        event = self.simulation.advance_tick()
        self.stats.ticks_processed += 1
        self.stats.current_tick = event.tick
        return event

    def buy(self, security_id: Optional[str], quantity: Quantity) -> TradeRecord:
        return self._trade(self.simulation.buy, security_id, quantity)

    def sell(self, security_id: Optional[str], quantity: Quantity) -> TradeRecord:
        return self._trade(self.simulation.sell, security_id, quantity)

    def _trade(self, command, security_id, quantity) -> TradeRecord:
        try:
            record = command(security_id, quantity)
        except Exception:
            self.stats.trades_rejected += 1
            raise
        self.stats.trades_processed += 1
        return record

    # ========================================================================
    # TICK LOOP
    # ========================================================================

    async def run(self, max_ticks: Optional[int] = None) -> Optional[RunSummary]:
        """
        Main loop. Ticks until the run ends, `stop()` is called or
        `max_ticks` ticks have been processed.
        """
        if self.simulation.status is RunStatus.IDLE:
            self.start_run()

        self._running = True
        processed = 0
        logger.info("Starting tick loop")

        try:
            while self._running and self.simulation.is_running:
                await self._paused.wait()
                if not self._running:
                    break

                if self.speed_multiplier > 0:
                    await asyncio.sleep(self.tick_seconds / self.speed_multiplier)
                    # Pause or stop may have been requested while sleeping
                    if not self._running or self.paused:
                        continue

                self.advance_tick()
                processed += 1

                if max_ticks is not None and processed >= max_ticks:
                    break

                # Yield control periodically when unthrottled
                if self.speed_multiplier == 0 and processed % 60 == 0:
                    await asyncio.sleep(0)

        except asyncio.CancelledError:
            logger.info("Tick loop cancelled")
            raise
        except Exception as e:
            logger.error(f"Tick loop error: {e}", exc_info=True)
            raise
        finally:
            self._running = False
            if not self.simulation.is_running:
                self.stream.close()
            logger.info(f"Tick loop stopped after {processed} ticks")

        return self.simulation.summary

    def get_stats(self) -> DriverStats:
        self.stats.current_tick = self.simulation.current_tick
        return self.stats
