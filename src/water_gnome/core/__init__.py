"""
Core watering engine.

Deterministic, I/O-free pipeline from daily weather to a watering plan:
- features: observation validation and windowed feature records
- scoring: continuous watering-need score and tri-state status
- planner: rule cascade, weekly quota, spacing and coverage passes
- stabilizer: hysteresis for today's recommendation
- hints: callouts and labels for the narrative layer
- engine: plan_watering() entry point and plan invariants
"""

from .dates import days_between, iso_week_key, parse_iso_date, short_label
from .errors import (
    ConfigurationError,
    EmptyInputError,
    PlannerIntegrityError,
    ValidationError,
    WaterGnomeError,
)
from .features import (
    DailyWeatherObservation,
    FeatureRecord,
    build_features,
    validate_observations,
)
from .scoring import (
    WateringStatus,
    score_day,
    status_from_score,
)
from .policy import (
    GARDEN_POLICY,
    WateringPolicy,
    coerce_policy,
)
from .planner import (
    DecisionRecord,
    PlannerState,
    enforce_no_adjacent_yes,
    is_convective_risk,
    nudge_forward_coverage,
    plan_schedule,
    soften_convective,
)
from .stabilizer import (
    find_today_index,
    material_change,
    stabilize_today,
)
from .hints import (
    Callout,
    PlanHints,
    build_plan_hints,
)
from .engine import (
    Plan,
    PlanResult,
    check_plan_invariants,
    plan_violations,
    plan_watering,
)

__all__ = [
    # Dates
    "days_between",
    "iso_week_key",
    "parse_iso_date",
    "short_label",
    # Errors
    "ConfigurationError",
    "EmptyInputError",
    "PlannerIntegrityError",
    "ValidationError",
    "WaterGnomeError",
    # Features
    "DailyWeatherObservation",
    "FeatureRecord",
    "build_features",
    "validate_observations",
    # Scoring
    "WateringStatus",
    "score_day",
    "status_from_score",
    # Policy
    "GARDEN_POLICY",
    "WateringPolicy",
    "coerce_policy",
    # Planner
    "DecisionRecord",
    "PlannerState",
    "enforce_no_adjacent_yes",
    "is_convective_risk",
    "nudge_forward_coverage",
    "plan_schedule",
    "soften_convective",
    # Stabilizer
    "find_today_index",
    "material_change",
    "stabilize_today",
    # Hints
    "Callout",
    "PlanHints",
    "build_plan_hints",
    # Engine
    "Plan",
    "PlanResult",
    "check_plan_invariants",
    "plan_violations",
    "plan_watering",
]
