"""
Water Gnome Engine

Single entry point that runs the whole pipeline:

    observations -> features -> planner -> stabilizer -> hints

Usage:
    from water_gnome import GARDEN_POLICY, plan_watering

    result = plan_watering(observations, GARDEN_POLICY, today="2025-08-10")
    snapshot = result.plan.to_dict()          # caller stores this
    ...
    result = plan_watering(observations, GARDEN_POLICY, today="2025-08-10",
                           previous=snapshot)  # stable "today"

Nothing here performs I/O or keeps state between calls; the previous plan
snapshot is the only thing carried across requests, and the caller owns it.

Copyright (c) 2025 Water Gnome contributors.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .dates import DateLike, days_between, iso_week_key, to_iso
from .errors import PlannerIntegrityError, ValidationError
from .features import FeatureRecord, ObservationLike, build_features
from .hints import PlanHints, build_plan_hints
from .planner import DecisionRecord, plan_schedule
from .policy import WateringPolicy, coerce_policy
from .stabilizer import find_today_index, stabilize_today

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class Plan:
    """Weather features and decisions, same length and date order.

    This pair is the snapshot callers persist and pass back as ``previous``.
    """
    weather: List[FeatureRecord] = field(default_factory=list)
    decisions: List[DecisionRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weather": [w.to_dict() for w in self.weather],
            "decisions": [d.to_dict() for d in self.decisions],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Plan":
        try:
            return cls(
                weather=[FeatureRecord.from_dict(w) for w in data.get("weather", [])],
                decisions=[DecisionRecord.from_dict(d) for d in data.get("decisions", [])],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Previous plan snapshot is malformed: {e}") from e


@dataclass
class PlanResult:
    """Output of one engine run."""
    today: str
    plan: Plan
    hints: PlanHints

    @property
    def today_decision(self) -> Optional[DecisionRecord]:
        idx = find_today_index(self.plan.weather, self.today)
        return self.plan.decisions[idx] if idx is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "today": self.today,
            **self.plan.to_dict(),
            "plan_hints": self.hints.to_dict(),
        }


# =============================================================================
# INVARIANTS
# =============================================================================

def plan_violations(plan: Plan, policy: WateringPolicy) -> List[str]:
    """Every way ``plan`` breaks the planner's guarantees (empty when sound)."""
    problems: List[str] = []
    if len(plan.weather) != len(plan.decisions):
        problems.append(
            f"length mismatch: {len(plan.weather)} weather vs {len(plan.decisions)} decisions"
        )
    for w, d in zip(plan.weather, plan.decisions):
        if w.date != d.date:
            problems.append(f"date mismatch: {w.date} vs {d.date}")

    yes_dates = [d.date for d in plan.decisions if d.is_yes]
    for earlier, later in zip(yes_dates, yes_dates[1:]):
        gap = days_between(later, earlier)
        if gap == 1:
            problems.append(f"back-to-back yes: {earlier}, {later}")
        if gap <= policy.min_gap_days:
            problems.append(f"yes within {policy.min_gap_days} days: {earlier}, {later}")

    for (year, week), count in Counter(iso_week_key(d) for d in yes_dates).items():
        if count > policy.max_yes_per_week:
            problems.append(f"{count} yes in ISO week {year}-W{week:02d}")
    return problems


def check_plan_invariants(plan: Plan, policy: WateringPolicy) -> None:
    problems = plan_violations(plan, policy)
    if problems:
        raise PlannerIntegrityError(
            f"Plan breaks {len(problems)} invariant(s): {problems[0]}",
            details={"problems": problems},
        )


# =============================================================================
# ENGINE
# =============================================================================

def _coerce_previous(previous: Union["Plan", Mapping[str, Any], None]) -> Optional[Plan]:
    if previous is None or isinstance(previous, Plan):
        return previous
    if isinstance(previous, Mapping):
        return Plan.from_dict(previous)
    raise ValidationError(
        f"Previous plan must be a Plan or a mapping, got {type(previous).__name__}"
    )


def plan_watering(
    observations: Iterable[ObservationLike],
    policy: Union[WateringPolicy, Mapping[str, Any]],
    today: DateLike,
    previous: Union[Plan, Mapping[str, Any], None] = None,
) -> PlanResult:
    """Build a stabilized watering plan plus narrative hints.

    Args:
        observations: Daily weather, any order, unique dates.
        policy: WateringPolicy or a mapping with every threshold.
        today: The caller's local date (ISO string or date).
        previous: The plan returned by the last call, if the caller kept it.

    Raises:
        ValidationError: bad observation or unparseable ``today``.
        EmptyInputError: no observations.
        ConfigurationError: policy missing keys or holding non-numbers.
        PlannerIntegrityError: the plan broke an invariant (a bug).
    """
    policy = coerce_policy(policy)
    try:
        today_iso = to_iso(today)
    except ValueError as e:
        raise ValidationError(f"Invalid today date: {today!r}", details={"today": today}) from e
    previous_plan = _coerce_previous(previous)

    weather = build_features(observations)
    decisions = plan_schedule(weather, policy, today_iso)
    decisions = stabilize_today(today_iso, weather, decisions, previous_plan, policy)

    plan = Plan(weather=weather, decisions=decisions)
    check_plan_invariants(plan, policy)

    hints = build_plan_hints(weather, decisions, policy, today_iso)
    logger.info(
        f"Plan for {today_iso}: {len(weather)} days, "
        f"{hints.yes_count_next7} soak(s) in the coming week"
    )
    return PlanResult(today=today_iso, plan=plan, hints=hints)
