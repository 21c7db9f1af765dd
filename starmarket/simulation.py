"""
Main market simulation orchestrator.
Synchronous state machine driven one tick at a time.
"""
from collections import deque
from typing import Callable, Deque, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

import numpy as np

from .core.catalog import DEFAULT_GROUPS, DEFAULT_HEADLINES, DEFAULT_LISTINGS
from .core.clock import Clock
from .core.config import SimulationConfig
from .core.errors import NoSelection, RunEnded, TradeError, UnknownSecurity
from .core.impact_scheduler import ImpactScheduler
from .core.news import NewsGenerator, NewsGroups
from .core.portfolio import Portfolio, Quantity
from .core.security import Security
from .core.types import (
    ClockState, EngineEvent, Listing, LogLevel, MarketLogEntry, NewsEvent,
    NewsRecord, RunEndedEvent, RunStatus, RunSummary, Side, TickEvent,
    TradeEvent, TradeRecord, format_money
)

logger = logging.getLogger(__name__)

Listener = Callable[[EngineEvent], None]

class MarketSimulation:
    """
    Simulation façade driven by a presentation layer.

    Per tick: clock, news, random walk, scheduled impacts, net-worth sample.
    Trades are validated against the price at the instant of the command.
    """

    def __init__(
        self,
        listings: Sequence[Listing] = DEFAULT_LISTINGS,
        groups: Optional[Mapping[str, Sequence[str]]] = None,
        headlines: Sequence[str] = DEFAULT_HEADLINES
    ):
        if not listings:
            raise ValueError("At least one listing is required")
        self.listings = tuple(listings)
        self.groups = NewsGroups(DEFAULT_GROUPS if groups is None else groups)
        self.headlines = tuple(headlines)

        self.status = RunStatus.IDLE
        self.config = SimulationConfig()
        self.rng: np.random.Generator = np.random.default_rng()

        self.securities: Dict[str, Security] = {}
        self.portfolio = Portfolio(self.config.starting_cash)
        self.clock: Optional[Clock] = None
        self.scheduler: Optional[ImpactScheduler] = None
        self.news: Optional[NewsGenerator] = None

        self.net_worth_series: List[Tuple[int, float]] = []
        self.market_log: Deque[MarketLogEntry] = deque(maxlen=self.config.market_log_length)
        self.summary: Optional[RunSummary] = None

        # Event handlers: event_type -> list of listeners
        self._listeners: Dict[type, List[Listener]] = {}

    # ========================================================================
    # RUN LIFECYCLE
    # ========================================================================

    def start_run(self, config: Optional[SimulationConfig] = None, seed: Optional[int] = None):
        """Create a fresh market and portfolio and enter RUNNING"""
        self.config = config or SimulationConfig()
        if seed is None:
            seed = self.config.seed
        self.rng = np.random.default_rng(seed)
        cfg = self.config

        self.securities = {}
        for listing in self.listings:
            price = float(self.rng.uniform(listing.min_price, listing.max_price))
            self.securities[listing.security_id] = Security(
                listing.security_id,
                price,
                description=listing.description,
                history_length=cfg.price_history_length
            )

        self.portfolio = Portfolio(cfg.starting_cash)
        self.clock = Clock(cfg, self.rng)
        self.scheduler = ImpactScheduler(self.securities)
        self.news = NewsGenerator(
            self.securities, self.scheduler, self.headlines, self.groups, cfg
        )

        self.net_worth_series = [(0, self.portfolio.net_worth(self.securities))]
        self.market_log = deque(maxlen=cfg.market_log_length)
        self.summary = None
        self.status = RunStatus.RUNNING

        self._log(
            LogLevel.INFO,
            f"Market open: {len(self.securities)} securities, "
            f"starting cash ${format_money(cfg.starting_cash)}"
        )
        logger.info(
            f"Run started: {cfg.months} months x {cfg.ticks_per_month} ticks, seed={seed}"
        )

    def advance_tick(self) -> TickEvent:
        """Process one tick. Raises RunEnded once the run is over."""
        if self.status is not RunStatus.RUNNING:
            raise RunEnded("The simulation is not running")

        clock_tick = self.clock.tick()
        state = clock_tick.state
        tick = state.tick_index

        if clock_tick.run_ended:
            return self._finalize(state)

        # 1) News: forced monthly triggers, then the periodic random check
        published: List[NewsRecord] = []
        if clock_tick.news_triggered:
            record = self.news.fire_news(self.rng, state.month_index, tick, forced=True)
            if record:
                published.append(record)
        if tick % self.config.news_interval_ticks == 0:
            record = self.news.maybe_fire_news(self.rng, state.month_index, tick)
            if record:
                published.append(record)

        # 2) Random walk
        cfg = self.config
        for security in self.securities.values():
            security.advance(self.rng, tick, cfg.walk_up, cfg.walk_down)

        # 3) Scheduled impacts land on top of the walk
        applied = self.scheduler.on_tick(tick)

        # 4) Net-worth sample
        net_worth = self.portfolio.net_worth(self.securities)
        self.net_worth_series.append((tick, net_worth))

        for record in published:
            self._log(LogLevel.INFO, f"NEWS: {record.format()}", tick)
            self._emit(NewsEvent(tick=tick, record=record))

        event = TickEvent(
            tick=tick,
            clock=state,
            net_worth=net_worth,
            news=tuple(published),
            impacts_applied=len(applied)
        )
        self._emit(event)
        logger.debug(f"Tick {tick}: net worth {net_worth:.2f}, {len(applied)} impact steps")
        return event

    def _finalize(self, state: ClockState) -> TickEvent:
        """Terminal transition: freeze scheduling and publish the summary"""
        self.scheduler.close()
        self.status = RunStatus.ENDED

        tick = state.tick_index
        final_net_worth = self.portfolio.net_worth(self.securities)
        self.net_worth_series.append((tick, final_net_worth))
        self.summary = RunSummary(
            final_net_worth=final_net_worth,
            starting_cash=self.portfolio.starting_cash,
            profit_loss=final_net_worth - self.portfolio.starting_cash,
            ticks_elapsed=tick
        )

        self._log(LogLevel.INFO, f"All {self.config.months} months have passed!", tick)
        self._log(
            LogLevel.INFO,
            f"Final Net Worth: ${format_money(self.summary.final_net_worth)} "
            f"(P/L: ${format_money(self.summary.profit_loss)})",
            tick
        )
        logger.info(
            f"Run ended at tick {tick}: net worth {final_net_worth:.2f}, "
            f"P/L {self.summary.profit_loss:+.2f}"
        )

        event = TickEvent(tick=tick, clock=state, net_worth=final_net_worth)
        self._emit(event)
        self._emit(RunEndedEvent(tick=tick, summary=self.summary))
        return event

    def run_to_end(self) -> RunSummary:
        """Advance until the run ends (batch mode)"""
        if self.status is RunStatus.IDLE:
            self.start_run()
        while self.status is RunStatus.RUNNING:
            self.advance_tick()
        return self.summary

    # ========================================================================
    # TRADING
    # ========================================================================

    def buy(self, security_id: Optional[str], quantity: Quantity) -> TradeRecord:
        """Buy `quantity` shares (or "max")"""
        return self._trade(Side.BUY, security_id, quantity)

    def sell(self, security_id: Optional[str], quantity: Quantity) -> TradeRecord:
        """Sell `quantity` shares (or "all")"""
        return self._trade(Side.SELL, security_id, quantity)

    def _trade(self, side: Side, security_id: Optional[str], quantity: Quantity) -> TradeRecord:
        tick = self.current_tick
        try:
            if self.status is not RunStatus.RUNNING:
                raise RunEnded("Trading is closed: the simulation has ended")
            security = self._resolve(security_id, side)
            if side is Side.BUY:
                record = self.portfolio.buy(security, quantity, tick)
            else:
                record = self.portfolio.sell(security, quantity, tick)
        except TradeError as e:
            self._log(LogLevel.REJECTED, e.message, tick)
            logger.warning(f"{side.value} rejected ({e.code}): {e.message}")
            raise

        verb = "Bought" if side is Side.BUY else "Sold"
        self._log(
            LogLevel.TRADE,
            f"{verb} {record.shares} shares of {record.security_id} @ ${format_money(record.price)}",
            tick
        )
        logger.info(f"{verb} {record.shares} {record.security_id} @ {record.price:.2f}")
        self._emit(TradeEvent(tick=tick, record=record))
        return record

    def _resolve(self, security_id: Optional[str], side: Side) -> Security:
        if not security_id:
            raise NoSelection(f"No stock selected to {side.value.lower()}.")
        if not isinstance(security_id, str):
            raise UnknownSecurity(f"Unknown security: {security_id!r:.40}")
        security = self.securities.get(security_id)
        if security is None:
            raise UnknownSecurity(f"Unknown security: {security_id}")
        return security

    # ========================================================================
    # NOTIFICATION
    # ========================================================================

    def register_listener(self, event_type: type, listener: Listener):
        """Register a synchronous listener for an event type (or EngineEvent for all)"""
        self._listeners.setdefault(event_type, []).append(listener)

    def unregister_listener(self, event_type: type, listener: Listener) -> bool:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)
            return True
        return False

    def _emit(self, event: EngineEvent):
        """Dispatch event to listeners; a failing listener never aborts the tick"""
        for event_type in (type(event), EngineEvent):
            for listener in list(self._listeners.get(event_type, ())):
                try:
                    listener(event)
                except Exception as e:
                    logger.error(
                        f"Listener {getattr(listener, '__name__', listener)} failed: {e}",
                        exc_info=True
                    )

    def _log(self, level: LogLevel, message: str, tick: Optional[int] = None):
        if tick is None:
            tick = self.current_tick
        self.market_log.append(MarketLogEntry(tick=tick, level=level, message=message))

    # ========================================================================
    # QUERIES
    # ========================================================================

    @property
    def current_tick(self) -> int:
        return self.clock.state.tick_index if self.clock else 0

    @property
    def clock_state(self) -> Optional[ClockState]:
        return self.clock.state if self.clock else None

    @property
    def is_running(self) -> bool:
        return self.status is RunStatus.RUNNING

    def get_security(self, security_id: str) -> Security:
        security = self.securities.get(security_id)
        if security is None:
            raise UnknownSecurity(f"Unknown security: {security_id}")
        return security

    def net_worth(self) -> float:
        return self.portfolio.net_worth(self.securities)

    def security_rows(self) -> List[dict]:
        """Price table rows, with the player's holding per security"""
        rows = []
        for security in self.securities.values():
            row = security.to_dict()
            row['shares_owned'] = self.portfolio.shares_of(security.security_id)
            rows.append(row)
        return rows

    def portfolio_snapshot(self) -> dict:
        return self.portfolio.get_stats(self.securities)

    def news_feed(self, count: Optional[int] = None) -> List[NewsRecord]:
        return self.news.get_feed(count) if self.news else []

    def get_market_log(self, count: Optional[int] = None) -> List[MarketLogEntry]:
        entries = list(self.market_log)
        if count is not None:
            return entries[-count:] if count > 0 else []
        return entries

    def snapshot(self) -> dict:
        """JSON-ready view of the whole query surface"""
        state = self.clock_state
        return {
            'status': self.status.value,
            'clock': None if state is None else {
                'tick': state.tick_index,
                'month_index': state.month_index,
                'month': state.month_name,
                'ticks_left_in_month': state.ticks_left_in_month,
                'ticks_left_total': state.ticks_left_total,
                'time_left': state.time_left_label,
            },
            'securities': self.security_rows(),
            'portfolio': self.portfolio_snapshot(),
            'summary': None if self.summary is None else {
                'final_net_worth': self.summary.final_net_worth,
                'starting_cash': self.summary.starting_cash,
                'profit_loss': self.summary.profit_loss,
                'ticks_elapsed': self.summary.ticks_elapsed,
            },
        }

    def get_stats(self) -> dict:
        """Simulation statistics"""
        return {
            'status': self.status.value,
            'tick': self.current_tick,
            'securities': len(self.securities),
            'news_fired': self.news.news_fired if self.news else 0,
            'scheduler': self.scheduler.get_stats().__dict__ if self.scheduler else None,
            'portfolio': self.portfolio_snapshot(),
            'market_log_entries': len(self.market_log),
        }
