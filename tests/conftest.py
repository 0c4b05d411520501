"""Pytest fixtures and configuration."""

from datetime import date, timedelta

import pytest

from water_gnome.core.features import FeatureRecord
from water_gnome.core.policy import GARDEN_POLICY, WateringPolicy


# ============================================================================
# Policies
# ============================================================================

@pytest.fixture
def garden_policy():
    """The vegetable-garden preset as a validated policy."""
    return WateringPolicy.from_dict(GARDEN_POLICY)


@pytest.fixture
def ramp_policy():
    """Garden preset tuned for the heat-ramp scenario."""
    return WateringPolicy.from_dict({
        **GARDEN_POLICY,
        "hotDay": 90,
        "dryTrigger3": 0.3,
        "humidHigh": 70,
    })


# ============================================================================
# Weather builders
# ============================================================================

@pytest.fixture
def make_dates():
    """ISO dates for ``n`` consecutive days starting at ``start``."""
    def _make(start, n):
        first = date.fromisoformat(start)
        return [(first + timedelta(days=i)).isoformat() for i in range(n)]
    return _make


@pytest.fixture
def make_obs():
    """Raw provider-style observation for one day."""
    def _make(day, hi=80, lo=None, rain=0.0, humidity=30, pop=0, wind=5, description="Sunny"):
        return {
            "date": day,
            "temp_max": hi,
            "temp_min": hi - 20 if lo is None else lo,
            "humidity": humidity,
            "description": description,
            "rain": rain,
            "precip_prob": pop,
            "wind_speed": wind,
        }
    return _make


@pytest.fixture
def make_day():
    """A FeatureRecord with quiet defaults, for scorer and stabilizer tests."""
    def _make(day="2025-08-10", hi=80, lo=60, rain=0.0, humidity=30, wind=5.0, pop=0,
              desc="", rain_past3=0.0, hi_next3=None, rain_next3=0.0):
        return FeatureRecord(
            date=day,
            hi=hi,
            lo=lo,
            rain=rain,
            humidity=humidity,
            wind=wind,
            pop=pop,
            desc=desc,
            rain_past3=rain_past3,
            hi_next3=hi if hi_next3 is None else hi_next3,
            rain_next3=rain_next3,
        )
    return _make


@pytest.fixture
def heat_ramp(make_dates, make_obs):
    """Ten dry days, Mon 2025-08-04 onward, highs climbing 78°F -> 96°F."""
    days = make_dates("2025-08-04", 10)
    return [make_obs(day, hi=78 + 2 * i) for i, day in enumerate(days)]
