"""
Water Gnome - should I water the garden today?

The engine turns a short daily weather outlook into a day-by-day watering
plan (yes / maybe / no) that respects spacing and weekly quotas, keeps
today's answer stable between requests, and hands a few callouts to the
narrative layer that writes the advice.

Usage:
    from water_gnome import GARDEN_POLICY, plan_watering

    result = plan_watering(observations, GARDEN_POLICY, today="2025-08-10")
    result.today_decision.status        # WateringStatus.YES
    result.plan.to_dict()               # store and pass back as previous=
"""

__version__ = "1.0.0"

from .core import (
    # Entry point
    plan_watering,
    Plan,
    PlanResult,
    PlanHints,
    Callout,
    # Records
    DailyWeatherObservation,
    FeatureRecord,
    DecisionRecord,
    WateringStatus,
    # Policy
    GARDEN_POLICY,
    WateringPolicy,
    # Errors
    WaterGnomeError,
    ValidationError,
    EmptyInputError,
    ConfigurationError,
    PlannerIntegrityError,
)

__all__ = [
    # Version
    "__version__",
    # Entry point
    "plan_watering",
    "Plan",
    "PlanResult",
    "PlanHints",
    "Callout",
    # Records
    "DailyWeatherObservation",
    "FeatureRecord",
    "DecisionRecord",
    "WateringStatus",
    # Policy
    "GARDEN_POLICY",
    "WateringPolicy",
    # Errors
    "WaterGnomeError",
    "ValidationError",
    "EmptyInputError",
    "ConfigurationError",
    "PlannerIntegrityError",
]
