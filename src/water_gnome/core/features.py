"""
Weather Feature Builder

Turns raw daily observations (already normalized by whichever weather
provider adapter fetched them) into FeatureRecords: rounded daily values
plus the trailing and leading 3-day windows the planner reasons about.

Windows are clipped at the edges of the array and never wrap:
- rain_past3: rain over the day and up to two preceding days
- hi_next3:   mean high over the day and up to two following days,
              divided by the actual number of days in the window
- rain_next3: rain over the same forward window

Copyright (c) 2025 Water Gnome contributors.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .dates import parse_iso_date
from .errors import EmptyInputError, ValidationError

logger = logging.getLogger(__name__)

WINDOW_DAYS = 3


# =============================================================================
# INPUT MODEL
# =============================================================================

class DailyWeatherObservation(BaseModel):
    """One calendar day of provider-normalized weather."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    date: str = Field(..., description="ISO date (YYYY-MM-DD)")
    temp_max: float = Field(..., description="Daily high in °F")
    temp_min: float = Field(..., description="Daily low in °F")
    humidity: float = Field(0.0, description="Relative humidity percentage")
    description: str = Field("", description="Provider's free-text conditions")
    rain: float = Field(0.0, description="Rain amount in inches")
    precip_prob: float = Field(0.0, description="Probability of precipitation (%)")
    wind_speed: float = Field(0.0, description="Daily/afternoon mean wind in mph")

    @field_validator("date", mode="before")
    @classmethod
    def _check_date(cls, value: Any) -> str:
        if value is None:
            raise ValueError("date is required")
        return parse_iso_date(value).isoformat()

    @field_validator("humidity", "rain", "precip_prob", "wind_speed", mode="before")
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("description", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


ObservationLike = Union[DailyWeatherObservation, Mapping[str, Any]]


# =============================================================================
# FEATURE RECORD
# =============================================================================

@dataclass(frozen=True)
class FeatureRecord:
    """A day of weather enriched with its windowed aggregates."""
    date: str
    hi: int
    lo: int
    rain: float       # inches, 2 decimals
    humidity: int     # %
    wind: float       # mph, 1 decimal
    pop: int          # %
    desc: str
    rain_past3: float
    hi_next3: int
    rain_next3: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeatureRecord":
        return cls(
            date=str(data["date"]),
            hi=int(data["hi"]),
            lo=int(data["lo"]),
            rain=float(data["rain"]),
            humidity=int(data["humidity"]),
            wind=float(data.get("wind", 0.0)),
            pop=int(data.get("pop", 0)),
            desc=str(data.get("desc", "")),
            rain_past3=float(data["rain_past3"]),
            hi_next3=int(data["hi_next3"]),
            rain_next3=float(data["rain_next3"]),
        )


# =============================================================================
# ROUNDING & CLAMPING
# =============================================================================

def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (so -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def round_to(value: float, digits: int) -> float:
    """Decimal half-up rounding, immune to float noise like 0.30000000000000004."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def _clamp(name: str, day: str, value: float, low: float, high: Optional[float] = None) -> float:
    clamped = max(low, value)
    if high is not None:
        clamped = min(high, clamped)
    if clamped != value:
        logger.debug(f"{day}: clamped {name} {value} -> {clamped}")
    return clamped


# =============================================================================
# BUILDER
# =============================================================================

def validate_observations(observations: Iterable[ObservationLike]) -> List[DailyWeatherObservation]:
    """Validate raw observations, rejecting bad or duplicate dates."""
    if observations is None:
        raise EmptyInputError()

    validated: List[DailyWeatherObservation] = []
    for index, raw in enumerate(observations):
        if isinstance(raw, DailyWeatherObservation):
            validated.append(raw)
            continue
        if not isinstance(raw, Mapping):
            raise ValidationError(
                f"Observation {index} must be a mapping, got {type(raw).__name__}",
                details={"index": index},
            )
        try:
            validated.append(DailyWeatherObservation.model_validate(dict(raw)))
        except PydanticValidationError as e:
            fields_in_error = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise ValidationError(
                f"Observation {index} is invalid: {', '.join(fields_in_error) or 'unknown field'}",
                details={"index": index, "fields": fields_in_error, "date": raw.get("date")},
            ) from e

    if not validated:
        raise EmptyInputError()

    seen: Dict[str, int] = {}
    for index, obs in enumerate(validated):
        if obs.date in seen:
            raise ValidationError(
                f"Duplicate observation date {obs.date}",
                details={"date": obs.date, "indexes": [seen[obs.date], index]},
            )
        seen[obs.date] = index

    return validated


def build_features(observations: Iterable[ObservationLike]) -> List[FeatureRecord]:
    """Sort observations by date and derive one FeatureRecord per day."""
    validated = validate_observations(observations)

    rows = []
    for obs in validated:
        rows.append({
            "date": obs.date,
            "hi": round_half_up(obs.temp_max),
            "lo": round_half_up(obs.temp_min),
            "rain": round_to(_clamp("rain", obs.date, obs.rain, 0.0), 2),
            "humidity": round_half_up(_clamp("humidity", obs.date, obs.humidity, 0.0, 100.0)),
            "wind": round_to(_clamp("wind", obs.date, obs.wind_speed, 0.0), 1),
            "pop": round_half_up(_clamp("pop", obs.date, obs.precip_prob, 0.0, 100.0)),
            "desc": obs.description.lower(),
        })

    # ISO strings sort chronologically
    df = pd.DataFrame(rows).sort_values("date", kind="mergesort").reset_index(drop=True)

    df["rain_past3"] = df["rain"].rolling(WINDOW_DAYS, min_periods=1).sum()

    # Forward windows are backward windows over the reversed series
    reversed_df = df.iloc[::-1]
    df["rain_next3"] = reversed_df["rain"].rolling(WINDOW_DAYS, min_periods=1).sum().iloc[::-1]
    df["hi_next3"] = reversed_df["hi"].rolling(WINDOW_DAYS, min_periods=1).mean().iloc[::-1]

    records = [
        FeatureRecord(
            date=row.date,
            hi=int(row.hi),
            lo=int(row.lo),
            rain=float(row.rain),
            humidity=int(row.humidity),
            wind=float(row.wind),
            pop=int(row.pop),
            desc=row.desc,
            rain_past3=round_to(row.rain_past3, 2),
            hi_next3=round_half_up(row.hi_next3),
            rain_next3=round_to(row.rain_next3, 2),
        )
        for row in df.itertuples(index=False)
    ]

    logger.debug(f"Built {len(records)} feature records ({records[0].date} .. {records[-1].date})")
    return records
