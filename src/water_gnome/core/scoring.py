"""
Watering Need Scorer

A continuous 0..1 "watering need" score per day, used to resolve days the
rule cascade leaves undecided. Heat and accumulated dryness push toward
watering; recent or imminent rain, ambient humidity and precipitation
probability push away. Wind counts toward watering as an evaporation proxy.
"""

from __future__ import annotations

from enum import Enum

import numpy as np

from .features import FeatureRecord


class WateringStatus(str, Enum):
    YES = "yes"
    MAYBE = "maybe"
    NO = "no"


# Term weights
W_HEAT = 0.52
W_DRYNESS = 0.42
W_HUMIDITY = 0.18
W_RAIN_SOON = 0.25
W_WIND = 0.18
W_POP = 0.20

YES_THRESHOLD = 0.60
MAYBE_THRESHOLD = 0.40


def score_day(day: FeatureRecord) -> float:
    """Watering need for one day, clamped to [0, 1]."""
    heat = max(0.0, (day.hi - 80) / 12)                 # 0 at 80°F, ~1 at 92°F
    dryness = 1 - min(1.0, day.rain_past3 / 0.6)        # 1 if bone dry, 0 at >= 0.6"
    humidity_brake = min(1.0, day.humidity / 100)
    rain_soon = min(1.0, day.rain_next3 / 0.25)
    wind_term = float(np.clip((day.wind - 6) / 14, 0.0, 1.0))  # 0 at <= 6 mph, 1 at 20 mph
    pop_term = day.pop / 100

    score = (
        W_HEAT * heat
        + W_DRYNESS * dryness
        - W_HUMIDITY * humidity_brake
        - W_RAIN_SOON * rain_soon
        + W_WIND * wind_term
        - W_POP * pop_term
    )
    return float(np.clip(score, 0.0, 1.0))


def status_from_score(score: float) -> WateringStatus:
    if score >= YES_THRESHOLD:
        return WateringStatus.YES
    if score >= MAYBE_THRESHOLD:
        return WateringStatus.MAYBE
    return WateringStatus.NO
