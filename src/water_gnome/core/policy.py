"""
Watering Policy

The threshold set that drives the planner's rule cascade. Every threshold
must be supplied by the caller; there is no silent defaulting. A named
preset (GARDEN_POLICY) exists for callers that want the vegetable-garden
tuning, but it has to be passed in explicitly.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# KEY NAMES
# =============================================================================

# camelCase names used by the web front end and stored policy JSON
CAMEL_KEYS: Dict[str, str] = {
    "rainSkip": "rain_skip",
    "rainSkip3": "rain_skip3",
    "humidHigh": "humid_high",
    "warmDay": "warm_day",
    "maxYesPerWeek": "max_yes_per_week",
    "minGapDays": "min_gap_days",
    "popCaution": "pop_caution",
    "qpfTinyToday": "qpf_tiny_today",
    "qpfTinyNext3": "qpf_tiny_next3",
    "hotWave": "hot_wave",
    "dryTrigger3": "dry_trigger3",
    "humidMod": "humid_mod",
    "hotDay": "hot_day",
    "windyMph": "windy_mph",
}

INTEGER_KEYS = ("max_yes_per_week", "min_gap_days")


# =============================================================================
# POLICY
# =============================================================================

@dataclass(frozen=True)
class WateringPolicy:
    """Thresholds for the watering planner (inches, °F, %, mph, days)."""

    rain_skip: float         # today's rain that forces a skip
    rain_skip3: float        # 3-day trailing rain that forces a skip
    humid_high: float        # humidity that blocks watering on cool stretches
    warm_day: float          # hi_next3 below this counts as a cool stretch
    max_yes_per_week: int    # quota per ISO week
    min_gap_days: int        # Yes days must be more than this many days apart
    pop_caution: float       # POP where we lean away from watering into likely rain
    qpf_tiny_today: float    # "trace" rain today
    qpf_tiny_next3: float    # "trace" rain over the next 3 days
    hot_wave: float          # hi_next3 that marks a multi-day heat wave
    dry_trigger3: float      # 3-day trailing rain below which soil counts as dry
    humid_mod: float         # humidity ceiling for the heat-wave trigger
    hot_day: float           # single-day hi that triggers watering
    windy_mph: float         # callout threshold only

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WateringPolicy":
        """Build a policy from snake_case or camelCase keys.

        Raises ConfigurationError naming every missing key, or the keys
        whose values are not numbers.
        """
        if isinstance(data, WateringPolicy):
            return data
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Policy must be a mapping, got {type(data).__name__}"
            )

        normalized: Dict[str, Any] = {}
        for key, value in data.items():
            name = CAMEL_KEYS.get(key, key)
            normalized[name] = value

        known = [f.name for f in fields(cls)]
        unknown = sorted(k for k in normalized if k not in known)
        if unknown:
            logger.debug(f"Ignoring unknown policy keys: {unknown}")

        missing = [name for name in known if name not in normalized]
        if missing:
            raise ConfigurationError(
                f"Policy is missing required keys: {', '.join(missing)}",
                details={"missing": missing},
            )

        invalid: List[str] = []
        values: Dict[str, Any] = {}
        for name in known:
            value = normalized[name]
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
                invalid.append(name)
                continue
            if name in INTEGER_KEYS:
                if int(value) != value:
                    invalid.append(name)
                    continue
                values[name] = int(value)
            else:
                values[name] = float(value)

        if invalid:
            raise ConfigurationError(
                f"Policy values must be numeric: {', '.join(invalid)}",
                details={"invalid": invalid},
            )

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_camel_dict(self) -> Dict[str, Any]:
        """Policy keyed in camelCase, as the advice payload and web UI carry it."""
        snake = self.to_dict()
        return {camel: snake[name] for camel, name in CAMEL_KEYS.items()}


def coerce_policy(policy: Any) -> WateringPolicy:
    """Accept a WateringPolicy or a mapping and return a validated policy."""
    if isinstance(policy, WateringPolicy):
        return policy
    if policy is None:
        raise ConfigurationError(
            "A watering policy is required",
            details={"missing": [f.name for f in fields(WateringPolicy)]},
        )
    return WateringPolicy.from_dict(policy)


# =============================================================================
# PRESETS
# =============================================================================

# Deep, infrequent watering for a home vegetable garden
GARDEN_POLICY: Dict[str, Any] = {
    "rainSkip": 0.30,
    "rainSkip3": 0.60,
    "humidHigh": 70,
    "warmDay": 80,
    "maxYesPerWeek": 3,
    "minGapDays": 2,
    "popCaution": 60,
    "qpfTinyToday": 0.05,
    "qpfTinyNext3": 0.20,
    "hotWave": 88,
    "dryTrigger3": 0.20,
    "humidMod": 50,
    "hotDay": 85,
    "windyMph": 12,
}
