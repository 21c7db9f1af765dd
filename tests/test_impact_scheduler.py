from __future__ import annotations

import pytest

from starmarket.core.impact_scheduler import ImpactScheduler
from starmarket.core.security import Security


@pytest.fixture
def scheduler(securities):
    return ImpactScheduler(securities)


def test_total_delta_lands_after_delay_plus_duration(scheduler, securities):
    s = securities["AAA"]

    assert scheduler.schedule_impact("AAA", 30.0, duration_ticks=3, delay_ticks=2, now=0)

    # delay: nothing moves during ticks 1..2
    for tick in (1, 2):
        assert scheduler.on_tick(tick) == []
    assert s.price == 100.0

    for tick in (3, 4):
        scheduler.on_tick(tick)
    assert s.price == pytest.approx(120.0)
    assert scheduler.pending_count == 1

    scheduler.on_tick(5)
    assert s.price == pytest.approx(s.initial_price + 30.0)
    assert scheduler.pending_count == 0
    assert scheduler.get_stats().impacts_completed == 1


def test_steps_are_equal(scheduler):
    scheduler.schedule_impact("BBB", -12.0, duration_ticks=4, delay_ticks=0, now=10)

    applied = [scheduler.on_tick(t) for t in range(11, 15)]

    assert applied == [[("BBB", -3.0)]] * 4


def test_overlapping_impacts_are_additive(scheduler, securities):
    scheduler.schedule_impact("AAA", 10.0, duration_ticks=2, delay_ticks=0, now=0)
    scheduler.schedule_impact("AAA", -4.0, duration_ticks=4, delay_ticks=0, now=0)

    first = scheduler.on_tick(1)

    # both impacts fire their own step in the same tick
    assert sorted(first) == [("AAA", -1.0), ("AAA", 5.0)]
    assert len(scheduler.pending_for("AAA")) == 2

    for tick in range(2, 5):
        scheduler.on_tick(tick)

    assert securities["AAA"].price == pytest.approx(106.0)
    assert scheduler.pending_for("AAA") == []


def test_impacts_on_different_securities_are_independent(scheduler, securities):
    scheduler.schedule_impact("AAA", 6.0, duration_ticks=3, delay_ticks=1, now=0)
    scheduler.schedule_impact("CCC", -9.0, duration_ticks=3, delay_ticks=0, now=0)

    assert scheduler.pending_by_security() == {"AAA": 6.0, "CCC": -9.0}

    for tick in range(1, 5):
        scheduler.on_tick(tick)

    assert securities["AAA"].price == pytest.approx(106.0)
    assert securities["CCC"].price == pytest.approx(31.0)
    assert securities["BBB"].price == 250.0


def test_skipped_ticks_are_caught_up(scheduler, securities):
    scheduler.schedule_impact("AAA", 3.0, duration_ticks=3, delay_ticks=0, now=0)

    scheduler.on_tick(5)

    # one overdue step per sweep, the rest re-filed on following ticks
    assert securities["AAA"].price == pytest.approx(101.0)
    scheduler.on_tick(6)
    scheduler.on_tick(7)
    assert securities["AAA"].price == pytest.approx(103.0)


def test_ticks_until_start(scheduler):
    scheduler.schedule_impact("AAA", 1.0, duration_ticks=1, delay_ticks=5, now=10)

    (impact,) = scheduler.pending_for("AAA")

    assert impact.next_fire_tick == 16
    assert impact.ticks_until_start(10) == 5
    assert impact.ticks_until_start(15) == 0


def test_closed_scheduler_rejects_new_work_but_finishes_in_flight(scheduler, securities):
    scheduler.schedule_impact("AAA", 2.0, duration_ticks=2, delay_ticks=0, now=0)
    scheduler.close()

    assert scheduler.schedule_impact("BBB", 5.0, duration_ticks=1, delay_ticks=0, now=0) is False
    assert scheduler.get_stats().impacts_rejected == 1

    scheduler.on_tick(1)
    scheduler.on_tick(2)
    assert securities["AAA"].price == pytest.approx(102.0)
    assert securities["BBB"].price == 250.0


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(security_id="AAA", duration_ticks=0, delay_ticks=0),
        dict(security_id="AAA", duration_ticks=1, delay_ticks=-1),
        dict(security_id="ZZZ", duration_ticks=1, delay_ticks=0),
    ],
)
def test_invalid_arguments(scheduler, kwargs):
    with pytest.raises(ValueError):
        scheduler.schedule_impact(total_delta=1.0, now=0, **kwargs)


def test_floor_clamp_applies_per_step():
    securities = {"LOW": Security("LOW", 5.0)}
    scheduler = ImpactScheduler(securities)
    scheduler.schedule_impact("LOW", -20.0, duration_ticks=2, delay_ticks=0, now=0)

    scheduler.on_tick(1)
    scheduler.on_tick(2)

    assert securities["LOW"].price == 1.0
