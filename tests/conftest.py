# tests/conftest.py
from __future__ import annotations

from collections import deque
from typing import Iterable

import numpy as np
import pytest

from starmarket.core.config import SimulationConfig
from starmarket.core.security import Security
from starmarket.simulation import MarketSimulation


class ScriptedRng:
    """
    Stand-in for numpy's Generator that replays scripted draws.

    integers() and random() pop from their own queues so a test can pin
    headline, anchor, fan-out roll, tier and direction exactly.
    """

    def __init__(self, integers: Iterable[int] = (), randoms: Iterable[float] = ()):
        self._integers = deque(integers)
        self._randoms = deque(randoms)

    def integers(self, low, high=None):
        value = self._integers.popleft()
        if high is None:
            assert 0 <= value < low
        else:
            assert low <= value < high
        return value

    def random(self):
        return self._randoms.popleft()

    def uniform(self, low, high):
        return 0.0


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def quiet_config() -> SimulationConfig:
    """No random walk and zero-size news impacts: prices only move when a test moves them."""
    return SimulationConfig(
        months=2,
        ticks_per_month=30,
        starting_cash=1000.0,
        walk_up=0.0,
        walk_down=0.0,
        news_probability=0.0,
        min_news_per_month=1,
        max_news_per_month=1,
        impact_magnitude_unit=0.0,
        seed=7,
    )


@pytest.fixture
def small_config() -> SimulationConfig:
    return SimulationConfig(
        months=3,
        ticks_per_month=10,
        starting_cash=5000.0,
        min_news_per_month=1,
        max_news_per_month=3,
        impact_delay_ticks=2,
        impact_duration_ticks=3,
        news_interval_ticks=2,
        news_probability=0.5,
        seed=42,
    )


@pytest.fixture
def securities() -> dict[str, Security]:
    return {
        "AAA": Security("AAA", 100.0),
        "BBB": Security("BBB", 250.0),
        "CCC": Security("CCC", 40.0),
    }


@pytest.fixture
def quiet_sim(quiet_config) -> MarketSimulation:
    sim = MarketSimulation()
    sim.start_run(quiet_config)
    return sim


@pytest.fixture
def scripted_rng():
    return ScriptedRng
