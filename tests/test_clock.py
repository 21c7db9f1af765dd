from __future__ import annotations

import pytest

from starmarket.core.clock import Clock
from starmarket.core.config import SimulationConfig
from starmarket.core.errors import RunEnded


@pytest.fixture
def config():
    return SimulationConfig(months=3, ticks_per_month=10, min_news_per_month=2, max_news_per_month=4)


def test_initial_state(config, rng):
    clock = Clock(config, rng)

    assert clock.state.tick_index == 0
    assert clock.state.month_index == 0
    assert clock.state.ticks_left_in_month == 10
    assert clock.state.ticks_left_total == 30
    assert 2 <= len(clock.news_triggers) <= 4
    assert all(1 <= offset <= 9 for offset in clock.news_triggers)


def test_tick_decrements_counters(config, rng):
    clock = Clock(config, rng)

    result = clock.tick()

    assert result.state.tick_index == 1
    assert result.state.ticks_left_in_month == 9
    assert result.state.ticks_left_total == 29
    assert not result.month_changed
    assert not result.run_ended


def test_month_boundary_resets_and_regenerates(config, rng):
    clock = Clock(config, rng)

    results = [clock.tick() for _ in range(10)]

    boundary = results[-1]
    assert boundary.month_changed
    assert boundary.state.month_index == 1
    assert boundary.state.ticks_left_in_month == 10
    assert boundary.state.ticks_left_total == 20
    assert boundary.state.month_name == "February"
    assert 2 <= len(clock.news_triggers) <= 4
    assert not any(r.month_changed for r in results[:-1])


def test_triggers_fire_once_at_their_offsets(config, rng):
    clock = Clock(config, rng)
    expected = set(clock.news_triggers)

    fired = set()
    for _ in range(9):
        result = clock.tick()
        if result.news_triggered:
            fired.add(config.ticks_per_month - result.state.ticks_left_in_month)

    assert fired == expected
    # consumed as they fire
    assert clock.news_triggers == frozenset()


def test_final_month_end_terminates(config, rng):
    clock = Clock(config, rng)

    results = [clock.tick() for _ in range(30)]

    assert results[-1].run_ended
    assert not any(r.run_ended for r in results[:-1])
    assert results[-1].state.ticks_left_total == 0
    assert results[-1].state.month_index == 2
    assert clock.ended

    with pytest.raises(RunEnded):
        clock.tick()


def test_month_index_is_monotonic(config, rng):
    clock = Clock(config, rng)
    months = [clock.tick().state.month_index for _ in range(30)]

    assert months == sorted(months)
    assert set(months) == {0, 1, 2}


def test_trigger_count_covers_configured_range(rng):
    config = SimulationConfig(months=12, ticks_per_month=5, min_news_per_month=1, max_news_per_month=3)
    clock = Clock(config, rng)

    sizes = set()
    for _ in range(200):
        sizes.add(len(clock.regenerate_triggers()))

    assert sizes == {1, 2, 3}


def test_time_left_label(rng):
    clock = Clock(SimulationConfig(), rng)

    assert clock.state.time_left_label == "12:00"
    clock.tick()
    assert clock.state.time_left_label == "11:59"
