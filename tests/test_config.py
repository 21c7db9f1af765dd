from __future__ import annotations

import pytest
from pydantic import ValidationError

from starmarket.core.config import SimulationConfig


def test_defaults_match_classic_game():
    cfg = SimulationConfig()

    assert cfg.months == 12
    assert cfg.ticks_per_month == 60
    assert cfg.total_ticks == 720
    assert cfg.starting_cash == 10_000.0
    assert (cfg.impact_delay_ticks, cfg.impact_duration_ticks) == (10, 15)
    assert (cfg.min_news_per_month, cfg.max_news_per_month) == (2, 3)
    assert cfg.impact_magnitude_unit == pytest.approx(0.2)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(min_news_per_month=4, max_news_per_month=3),
        dict(min_news_per_month=0),
        dict(ticks_per_month=3, max_news_per_month=3),
        dict(news_probability=1.5),
        dict(months=0),
        dict(months=13),
        dict(walk_up=-1.0),
        dict(impact_duration_ticks=0),
        dict(starting_cash=-10),
        dict(bogus_option=1),
    ],
)
def test_invalid_configs(kwargs):
    with pytest.raises(ValidationError):
        SimulationConfig(**kwargs)


def test_config_is_frozen():
    cfg = SimulationConfig()

    with pytest.raises(ValidationError):
        cfg.months = 3


def test_from_dict():
    cfg = SimulationConfig.model_validate({"months": 2, "ticks_per_month": 30, "seed": 9})

    assert cfg.total_ticks == 60
    assert cfg.seed == 9
