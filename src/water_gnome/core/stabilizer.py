"""
Plan Stabilizer

Hysteresis for today's recommendation. Every request recomputes the plan
from scratch, so small forecast wobbles could flip today's answer between
page loads. When the caller hands back the previous plan, today's status
is pinned to the previous one unless something material changed.

Only today's row is ever pinned. Every other day reflects the fresh
computation.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

from .dates import DateLike, days_between, iso_week_key, to_iso
from .features import FeatureRecord
from .planner import DecisionRecord
from .policy import WateringPolicy
from .scoring import WateringStatus

if TYPE_CHECKING:
    from .engine import Plan

logger = logging.getLogger(__name__)


# Material change thresholds (previous -> new)
POP_WAS_BELOW = 50
POP_NOW_AT_LEAST = 60
RAIN_NEXT3_WAS_BELOW = 0.20
RAIN_NEXT3_NOW_AT_LEAST = 0.30
RAIN_PAST3_WAS_BELOW = 0.50
RAIN_PAST3_NOW_AT_LEAST = 0.60
SCORE_SHIFT = 0.15


def find_today_index(weather: Sequence[FeatureRecord], today: DateLike) -> Optional[int]:
    """Today's row: exact match, else the first later date, else the first row."""
    if not weather:
        return None
    today_iso = to_iso(today)
    for i, day in enumerate(weather):
        if day.date == today_iso:
            return i
    for i, day in enumerate(weather):
        if day.date > today_iso:
            return i
    return 0


def material_change(
    prev_day: Optional[FeatureRecord],
    new_day: FeatureRecord,
    prev_score: float,
    new_score: float,
) -> Optional[str]:
    """Name the first material change between two forecasts of the same day, if any."""
    if prev_day is not None:
        if prev_day.pop < POP_WAS_BELOW and new_day.pop >= POP_NOW_AT_LEAST:
            return f"pop {prev_day.pop} -> {new_day.pop}"
        if prev_day.rain_next3 < RAIN_NEXT3_WAS_BELOW and new_day.rain_next3 >= RAIN_NEXT3_NOW_AT_LEAST:
            return f"rain_next3 {prev_day.rain_next3} -> {new_day.rain_next3}"
        if prev_day.rain_past3 < RAIN_PAST3_WAS_BELOW and new_day.rain_past3 >= RAIN_PAST3_NOW_AT_LEAST:
            return f"rain_past3 {prev_day.rain_past3} -> {new_day.rain_past3}"
    if abs(prev_score - new_score) >= SCORE_SHIFT:
        return f"score {prev_score:.2f} -> {new_score:.2f}"
    return None


def _pin_breaks_constraints(
    decisions: Sequence[DecisionRecord],
    index: int,
    policy: WateringPolicy,
) -> Optional[str]:
    """Would turning ``decisions[index]`` into "yes" break spacing, adjacency or quota?"""
    target = decisions[index]
    others = [d for i, d in enumerate(decisions) if i != index and d.is_yes]
    for other in others:
        gap = abs(days_between(target.date, other.date))
        if gap == 1:
            return f"adjacent to {other.date}"
        if gap <= policy.min_gap_days:
            return f"within {policy.min_gap_days} days of {other.date}"
    week = iso_week_key(target.date)
    in_week = sum(1 for d in others if iso_week_key(d.date) == week)
    if in_week >= policy.max_yes_per_week:
        return "weekly quota reached"
    return None


def stabilize_today(
    today: DateLike,
    weather: Sequence[FeatureRecord],
    decisions: Sequence[DecisionRecord],
    previous: Optional["Plan"],
    policy: WateringPolicy,
) -> List[DecisionRecord]:
    """Return decisions with today's status pinned to ``previous`` when nothing material changed."""
    out = list(decisions)
    if previous is None or not out:
        return out

    idx = find_today_index(weather, today)
    if idx is None:
        return out

    new_day, new_decision = weather[idx], out[idx]
    prev_decisions: Dict[str, DecisionRecord] = {d.date: d for d in previous.decisions}
    prev_weather: Dict[str, FeatureRecord] = {w.date: w for w in previous.weather}

    prev_decision = prev_decisions.get(new_day.date)
    if prev_decision is None or prev_decision.status is new_decision.status:
        return out

    change = material_change(
        prev_weather.get(new_day.date), new_day, prev_decision.score, new_decision.score
    )
    if change:
        logger.info(
            f"{new_day.date}: {prev_decision.status.value} -> {new_decision.status.value} ({change})"
        )
        return out

    if prev_decision.status is WateringStatus.YES:
        conflict = _pin_breaks_constraints(out, idx, policy)
        if conflict:
            logger.warning(
                f"{new_day.date}: not pinning previous yes, it would be {conflict}; "
                f"keeping {new_decision.status.value}"
            )
            return out

    logger.info(
        f"{new_day.date}: pinned {prev_decision.status.value} "
        f"(fresh {new_decision.status.value}, no material change)"
    )
    out[idx] = replace(new_decision, status=prev_decision.status)
    return out
