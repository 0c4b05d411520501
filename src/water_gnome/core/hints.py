"""
Plan Hints

Small, machine-usable callouts for the narrative layer: which days of the
coming week matter and why, plus short display labels for every date.
The narrative generator names these days; it never decides them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .dates import DateLike, days_between, short_label
from .features import FeatureRecord
from .planner import DecisionRecord, forward_window
from .policy import WateringPolicy
from .scoring import WateringStatus

logger = logging.getLogger(__name__)

HEAT_PEAK_MIN_HI = 88
HUMID_STRETCH_MIN = 70

REASON_PLANNED = "planned soak"
REASON_SECOND = "possible second soak"
REASON_HEAT_PEAK = "heat peak"
REASON_HUMID = "humid stretch"
REASON_BREEZY = "breezy afternoon"


@dataclass(frozen=True)
class Callout:
    date: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"date": self.date, "reason": self.reason}


@dataclass
class PlanHints:
    """What the narrative layer should mention about the coming week."""
    yes_dates_next7: List[str] = field(default_factory=list)
    candidate_second_yes: Optional[str] = None
    yes_count_next7: int = 0
    labels: Dict[str, str] = field(default_factory=dict)
    callouts: List[Callout] = field(default_factory=list)
    heat_peak: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "yes_dates_next7": list(self.yes_dates_next7),
            "candidate_second_yes": self.candidate_second_yes,
            "yes_count_next7": self.yes_count_next7,
            "labels": dict(self.labels),
            "callouts": [c.to_dict() for c in self.callouts],
            "heat_peak": self.heat_peak,
        }


def _candidate_second_yes(
    window_decisions: Sequence[DecisionRecord],
    policy: WateringPolicy,
) -> Optional[str]:
    first_yes = next((i for i, d in enumerate(window_decisions) if d.is_yes), None)
    anchor = window_decisions[first_yes].date if first_yes is not None else None
    start = first_yes + 1 if first_yes is not None else 0

    for decision in window_decisions[start:]:
        if decision.status is WateringStatus.NO:
            continue
        if anchor is None or days_between(decision.date, anchor) > policy.min_gap_days:
            return decision.date
    return None


def build_plan_hints(
    weather: Sequence[FeatureRecord],
    decisions: Sequence[DecisionRecord],
    policy: WateringPolicy,
    today: Optional[DateLike],
) -> PlanHints:
    """Summarize the finalized plan for the coming 7 days."""
    labels = {day.date: short_label(day.date) for day in weather}
    if not weather:
        return PlanHints(labels=labels)

    start, end = forward_window(weather, today, whole_if_past=False)
    window_weather = weather[start:end + 1]
    window_decisions = decisions[start:end + 1]

    yes_dates = [d.date for d in window_decisions if d.is_yes]
    candidate = _candidate_second_yes(window_decisions, policy) if len(yes_dates) < 2 else None

    peak = window_weather[0]
    for day in window_weather[1:]:
        if day.hi > peak.hi:
            peak = day

    callouts: List[Callout] = []
    if yes_dates:
        callouts.append(Callout(yes_dates[0], REASON_PLANNED))
    if candidate:
        callouts.append(Callout(candidate, REASON_SECOND))
    if peak.hi >= HEAT_PEAK_MIN_HI:
        callouts.append(Callout(peak.date, REASON_HEAT_PEAK))
    if window_weather[0].humidity >= HUMID_STRETCH_MIN:
        callouts.append(Callout(window_weather[0].date, REASON_HUMID))
    breezy = next((d for d in window_weather if d.wind >= policy.windy_mph), None)
    if breezy is not None:
        callouts.append(Callout(breezy.date, REASON_BREEZY))

    logger.debug(f"Hints for {window_weather[0].date}: yes={yes_dates} candidate={candidate}")
    return PlanHints(
        yes_dates_next7=yes_dates,
        candidate_second_yes=candidate,
        yes_count_next7=len(yes_dates),
        labels=labels,
        callouts=callouts,
        heat_peak=peak.date,
    )
