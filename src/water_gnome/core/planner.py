"""
Watering Planner

Deterministic day-by-day scheduler. Each day runs through a first-match
rule cascade (hard skips, rain-probability caution, convective risk),
positive heat triggers, and finally the score. Global constraints (weekly
quota, minimum spacing, no back-to-back watering) are enforced while
folding over the days and again by post-passes.

The running counters (last watering date, waterings this ISO week) live in
a PlannerState accumulator threaded through a single left-to-right fold,
so planning one location never touches state shared with another.

Pipeline:
    fold(days, softening each committed "yes") -> no-adjacent pass
        -> forward-coverage nudge -> soften -> no-adjacent pass

Copyright (c) 2025 Water Gnome contributors.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, replace
from functools import reduce
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .dates import DateLike, days_between, iso_week_key, to_iso
from .errors import PlannerIntegrityError
from .features import FeatureRecord, round_half_up, round_to
from .policy import WateringPolicy
from .scoring import WateringStatus, score_day, status_from_score

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Rain expected over the next 3 days that always means skip (inches)
RAIN_NEXT3_SKIP = 0.30

# Heat-wave trigger only fires when the next 3 days stay drier than this
HEAT_WAVE_MAX_RAIN_NEXT3 = 0.20

# POP (%) from which a low-QPF day counts as convective (thunderstorm) risk
CONVECTIVE_POP_FLOOR = 40

# Convective-risk waterings are softened to "maybe" unless hotter than this
SOFTEN_BELOW_HI = 92

# Forward-coverage nudge over the coming week
NUDGE_WINDOW_DAYS = 7
NUDGE_MAX_RAIN = 0.25
NUDGE_MIN_AVG_HI = 84
NUDGE_TARGET_YES = 2


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class DecisionRecord:
    """The planner's call for one day."""
    date: str
    status: WateringStatus
    score: float  # 0..1, 2 decimals

    @property
    def is_yes(self) -> bool:
        return self.status is WateringStatus.YES

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "status": self.status.value, "score": self.score}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DecisionRecord":
        return cls(
            date=str(data["date"]),
            status=WateringStatus(data["status"]),
            score=float(data["score"]),
        )


@dataclass(frozen=True)
class PlannerState:
    """Fold accumulator for one pass over the day sequence."""
    last_yes_date: Optional[str] = None
    week_key: Optional[Tuple[int, int]] = None
    week_yes: int = 0
    decisions: Tuple[DecisionRecord, ...] = ()


# =============================================================================
# PREDICATES
# =============================================================================

def is_convective_risk(day: FeatureRecord, policy: WateringPolicy) -> bool:
    """Rain is likely but guidance shows only trace amounts: a pop-up storm."""
    return (
        day.pop >= CONVECTIVE_POP_FLOOR
        and day.rain < policy.qpf_tiny_today
        and day.rain_next3 < policy.qpf_tiny_next3
    )


def _spacing_blocked(date: str, last_yes_date: Optional[str], policy: WateringPolicy) -> bool:
    return last_yes_date is not None and days_between(date, last_yes_date) <= policy.min_gap_days


def _quota_blocked(state: PlannerState, policy: WateringPolicy) -> bool:
    return state.week_yes >= policy.max_yes_per_week


def _hard_no_reason(day: FeatureRecord, state: PlannerState, policy: WateringPolicy) -> Optional[str]:
    if day.rain >= policy.rain_skip:
        return "rain today"
    if day.rain_past3 >= policy.rain_skip3:
        return "rain over last 3 days"
    if day.rain_next3 >= RAIN_NEXT3_SKIP:
        return "rain coming"
    if day.humidity >= policy.humid_high and day.hi_next3 < policy.warm_day:
        return "humid and mild"
    if _quota_blocked(state, policy):
        return "weekly quota reached"
    if _spacing_blocked(day.date, state.last_yes_date, policy):
        return "too soon after last watering"
    return None


def _tentative_status(day: FeatureRecord, state: PlannerState, policy: WateringPolicy) -> Tuple[WateringStatus, str]:
    reason = _hard_no_reason(day, state, policy)
    if reason:
        return WateringStatus.NO, reason

    trace_only = day.rain < policy.qpf_tiny_today and day.rain_next3 < policy.qpf_tiny_next3
    if day.pop >= policy.pop_caution and trace_only:
        return WateringStatus.NO, "likely brief storm"
    if day.pop >= CONVECTIVE_POP_FLOOR and trace_only:
        return WateringStatus.MAYBE, "convective risk"
    return WateringStatus.MAYBE, "undecided"


def _positive_trigger(day: FeatureRecord, policy: WateringPolicy) -> Optional[str]:
    heat_wave = (
        day.hi_next3 >= policy.hot_wave
        and day.rain_next3 < HEAT_WAVE_MAX_RAIN_NEXT3
        and day.rain_past3 < policy.dry_trigger3
        and day.humidity < policy.humid_mod
    )
    if heat_wave:
        return "heat wave"
    hot_dry_today = (
        day.hi >= policy.hot_day
        and day.rain_past3 < policy.dry_trigger3
        and day.humidity < policy.humid_high
    )
    if hot_dry_today:
        return "hot and dry"
    return None


def _should_soften(day: FeatureRecord, policy: WateringPolicy) -> bool:
    return is_convective_risk(day, policy) and day.hi < SOFTEN_BELOW_HI


# =============================================================================
# FOLD
# =============================================================================

def _roll_week(state: PlannerState, day: FeatureRecord) -> PlannerState:
    week = iso_week_key(day.date)
    if week != state.week_key:
        return replace(state, week_key=week, week_yes=0)
    return state


def _plan_day(state: PlannerState, day: FeatureRecord, policy: WateringPolicy) -> PlannerState:
    state = _roll_week(state, day)
    score = score_day(day)

    status, reason = _tentative_status(day, state, policy)

    if status is WateringStatus.MAYBE:
        trigger = _positive_trigger(day, policy)
        if trigger:
            status, reason = WateringStatus.YES, trigger

    if status is WateringStatus.MAYBE:
        status, reason = status_from_score(score), f"score {score:.2f}"

    if status is WateringStatus.YES and (
        _quota_blocked(state, policy) or _spacing_blocked(day.date, state.last_yes_date, policy)
    ):
        status, reason = WateringStatus.NO, "spacing/quota recheck"

    if status is WateringStatus.YES:
        state = replace(state, last_yes_date=day.date, week_yes=state.week_yes + 1)
        if _should_soften(day, policy):
            status, reason = WateringStatus.MAYBE, "softened before likely storm"

    logger.debug(f"{day.date}: {status.value} ({reason})")
    decision = DecisionRecord(date=day.date, status=status, score=round_to(score, 2))
    return replace(state, decisions=state.decisions + (decision,))


# =============================================================================
# POST-PASSES
# =============================================================================

def soften_convective(
    weather: Sequence[FeatureRecord],
    decisions: Sequence[DecisionRecord],
    policy: WateringPolicy,
) -> List[DecisionRecord]:
    """Demote "yes" to "maybe" right before a likely thunderstorm unless it is very hot."""
    out = []
    for day, decision in zip(weather, decisions):
        if decision.is_yes and _should_soften(day, policy):
            logger.debug(f"{day.date}: softened yes -> maybe (convective risk)")
            decision = replace(decision, status=WateringStatus.MAYBE)
        out.append(decision)
    return out


def enforce_no_adjacent_yes(decisions: Sequence[DecisionRecord]) -> List[DecisionRecord]:
    """Scan left to right; of two back-to-back "yes" days the later becomes "no"."""
    out = list(decisions)
    for i in range(1, len(out)):
        prev, cur = out[i - 1], out[i]
        if prev.is_yes and cur.is_yes and days_between(cur.date, prev.date) == 1:
            logger.debug(f"{cur.date}: demoted yes -> no (follows {prev.date})")
            out[i] = replace(cur, status=WateringStatus.NO)
    return out


def forward_window(
    weather: Sequence[FeatureRecord],
    today: Optional[DateLike],
    whole_if_past: bool = True,
) -> Tuple[int, int]:
    """(start, end) indexes, inclusive, of the 7 days from the first date >= today.

    When every date is before today the window is the whole array, or the
    first 7 days with ``whole_if_past=False``.
    """
    start = None
    if today is not None:
        today_iso = to_iso(today)
        start = next((i for i, day in enumerate(weather) if day.date >= today_iso), None)
    if start is None:
        if whole_if_past:
            return 0, len(weather) - 1
        start = 0
    return start, min(len(weather) - 1, start + NUDGE_WINDOW_DAYS - 1)


def nudge_forward_coverage(
    weather: Sequence[FeatureRecord],
    decisions: Sequence[DecisionRecord],
    policy: WateringPolicy,
    today: Optional[DateLike],
) -> List[DecisionRecord]:
    """Make sure a hot, dry coming week gets at least two soaks when the rules allow.

    Upgrades at most one "maybe" day, earliest first.
    """
    out = list(decisions)
    if not out:
        return out

    start, end = forward_window(weather, today)
    window = weather[start:end + 1]
    rain7 = round_to(sum(d.rain for d in window), 2)
    avg_hi7 = round_half_up(sum(d.hi for d in window) / len(window))
    yes_in_window = sum(1 for d in out[start:end + 1] if d.is_yes)

    if rain7 >= NUDGE_MAX_RAIN or avg_hi7 < NUDGE_MIN_AVG_HI or yes_in_window >= NUDGE_TARGET_YES:
        return out

    yes_dates = [d.date for d in out if d.is_yes]
    week_counts = Counter(iso_week_key(d) for d in yes_dates)

    for i in range(start, end + 1):
        day, decision = weather[i], out[i]
        if decision.status is not WateringStatus.MAYBE or is_convective_risk(day, policy):
            continue
        if any(abs(days_between(day.date, other)) <= policy.min_gap_days for other in yes_dates):
            continue
        if week_counts[iso_week_key(day.date)] >= policy.max_yes_per_week:
            continue
        logger.debug(
            f"{day.date}: nudged maybe -> yes (rain7={rain7}, avg_hi7={avg_hi7}, yes={yes_in_window})"
        )
        out[i] = replace(decision, status=WateringStatus.YES)
        return out

    logger.debug(f"Hot dry week from {weather[start].date} but no day eligible for a second soak")
    return out


# =============================================================================
# PLANNER
# =============================================================================

def plan_schedule(
    weather: Sequence[FeatureRecord],
    policy: WateringPolicy,
    today: Optional[DateLike] = None,
) -> List[DecisionRecord]:
    """Plan one decision per day, in the same order as ``weather``."""
    initial = PlannerState()
    final_state = reduce(lambda state, day: _plan_day(state, day, policy), weather, initial)
    decisions = list(final_state.decisions)

    decisions = enforce_no_adjacent_yes(decisions)
    decisions = nudge_forward_coverage(weather, decisions, policy, today)
    decisions = soften_convective(weather, decisions, policy)
    decisions = enforce_no_adjacent_yes(decisions)

    if len(decisions) != len(weather):
        raise PlannerIntegrityError(
            "Planner output length mismatch",
            details={"weather": len(weather), "decisions": len(decisions)},
        )

    counts = Counter(d.status for d in decisions)
    logger.info(
        f"Planned {len(decisions)} days: {counts[WateringStatus.YES]} yes / "
        f"{counts[WateringStatus.MAYBE]} maybe / {counts[WateringStatus.NO]} no"
    )
    return decisions
