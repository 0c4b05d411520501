"""
Narrative advice seam.

The watering plan is decided by the engine; a language model only writes
the words. This module prepares what the model sees (payload, system
prompt, response schema) and repairs what comes back so the advice can
never contradict the plan: every planned date appears exactly once, in
order, carrying the engine's status.

No network calls happen here. The caller owns the model client.
"""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.engine import Plan, PlanResult
from ..core.errors import ConfigurationError
from ..core.policy import WateringPolicy, coerce_policy
from ..core.scoring import WateringStatus

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================

DEFAULT_TIMEZONE = "America/New_York"


@dataclass
class AdviceConfig:
    """Settings for the narrative layer.

    The token and temperature limits are not used here; the caller's model
    client receives them through completion_options().
    """

    timezone: str = field(
        default_factory=lambda: os.getenv("WATER_GNOME_TZ", DEFAULT_TIMEZONE)
    )
    max_completion_tokens: int = 1100
    temperature: float = 0.25

    def completion_options(self, n_days: int) -> Dict[str, Any]:
        """Keyword arguments for a chat-completions call answering with advice JSON."""
        return {
            "max_completion_tokens": self.max_completion_tokens,
            "temperature": self.temperature,
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "watering_advice",
                    "strict": True,
                    "schema": advice_response_schema(n_days),
                },
            },
        }


def today_for_timezone(tz_name: Optional[str] = None) -> str:
    """The current local date in ``tz_name`` as ``YYYY-MM-DD``."""
    name = tz_name or AdviceConfig().timezone
    # POSIX TZ values sometimes carry a leading colon (":America/Chicago")
    name = name.lstrip(":")
    try:
        zone = ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone: {name}", details={"timezone": name}) from e
    return datetime.now(zone).date().isoformat()


# =============================================================================
# PROMPT & SCHEMA
# =============================================================================

ADVICE_SYSTEM_PROMPT = """You are a master vegetable gardener writing short, friendly watering advice.
You receive today's date, the watering policy, daily weather features, the planned
decision for each day, and plan hints (labels and callouts).

The decisions are final. Never change a day's status; explain it.
- Refer to days by their label (e.g. "Sun 8/10"), not by ISO date.
- Mention callout days naturally: planned soak, possible second soak, heat peak,
  humid stretch, breezy afternoon.
- Deep, infrequent watering beats daily sprinkling; water early morning.
- Reply with valid JSON only."""

FALLBACK_REASONS: Dict[WateringStatus, str] = {
    WateringStatus.YES: "Deep soak planned; heat and dry spell ahead.",
    WateringStatus.MAYBE: "Borderline day; check the top 2 inches of soil for dryness.",
    WateringStatus.NO: "Rest day; soil is likely holding moisture.",
}

STATUS_VALUES = [s.value for s in WateringStatus]


def advice_response_schema(n_days: int) -> Dict[str, Any]:
    """JSON schema the assistant must answer with, sized to the plan."""
    return {
        "type": "object",
        "required": ["weekly_advice", "today_advice"],
        "additionalProperties": False,
        "properties": {
            "weekly_advice": {
                "type": "object",
                "required": ["week_summary", "daily"],
                "additionalProperties": False,
                "properties": {
                    "week_summary": {"type": "string", "minLength": 6},
                    "daily": {
                        "type": "array",
                        "minItems": n_days,
                        "maxItems": n_days,
                        "items": {
                            "type": "object",
                            "required": ["date", "watering_status", "reason"],
                            "additionalProperties": False,
                            "properties": {
                                "date": {"type": "string"},
                                "watering_status": {"type": "string", "enum": STATUS_VALUES},
                                "reason": {"type": "string", "minLength": 2},
                            },
                        },
                    },
                },
            },
            "today_advice": {
                "type": "object",
                "required": [
                    "should_water", "confidence", "reason",
                    "advice", "soil_moisture", "key_factors",
                ],
                "additionalProperties": False,
                "properties": {
                    "should_water": {"type": "string", "enum": STATUS_VALUES},
                    "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
                    "reason": {"type": "string", "minLength": 2},
                    "advice": {"type": "string", "minLength": 6},
                    "soil_moisture": {"type": "string"},
                    "key_factors": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
    }


def build_advice_payload(
    result: PlanResult,
    policy: Union[WateringPolicy, Mapping[str, Any]],
) -> Dict[str, Any]:
    """Everything the assistant needs, as plain JSON-ready data."""
    policy = coerce_policy(policy)
    return {
        "today": result.today,
        "policy": policy.to_camel_dict(),
        "weather": [w.to_dict() for w in result.plan.weather],
        "decisions": [d.to_dict() for d in result.plan.decisions],
        "plan_hints": result.hints.to_dict(),
    }


# =============================================================================
# RECONCILIATION
# =============================================================================

def _daily_by_date(daily: Any) -> Dict[str, Dict[str, Any]]:
    """Index the model's daily entries by date; accepts a list or a date-keyed mapping."""
    by_date: Dict[str, Dict[str, Any]] = {}
    if isinstance(daily, list):
        for item in daily:
            if isinstance(item, Mapping) and item.get("date"):
                by_date[str(item["date"])] = dict(item)
    elif isinstance(daily, Mapping):
        for day, item in daily.items():
            if isinstance(item, Mapping):
                by_date[str(day)] = {"date": str(day), **item}
    return by_date


def _reason_for(entry: Optional[Mapping[str, Any]], status: WateringStatus) -> str:
    reason = entry.get("reason") if entry else None
    if isinstance(reason, str) and reason.strip():
        return reason
    return FALLBACK_REASONS[status]


def reconcile_advice(
    advice: Optional[Mapping[str, Any]],
    plan: Plan,
    today: str,
) -> Dict[str, Any]:
    """Force the model's advice to agree with the plan.

    - weekly_advice.daily becomes one entry per plan date, in plan order,
      with watering_status taken from the plan
    - missing or blank reasons get a status-specific fallback sentence
    - today_advice.should_water mirrors today's row (exact date, else the
      first later date, else the last row)

    ``advice`` is not modified; a repaired copy is returned.
    """
    fixed: Dict[str, Any] = copy.deepcopy(dict(advice or {}))
    weekly = fixed.get("weekly_advice")
    if not isinstance(weekly, dict):
        weekly = {}
    fixed["weekly_advice"] = weekly

    by_date = _daily_by_date(weekly.get("daily"))
    daily: List[Dict[str, Any]] = []
    overridden = 0
    for decision in plan.decisions:
        entry = by_date.get(decision.date)
        if entry and entry.get("watering_status") != decision.status.value:
            overridden += 1
        daily.append({
            "date": decision.date,
            "watering_status": decision.status.value,
            "reason": _reason_for(entry, decision.status),
        })
    weekly["daily"] = daily

    if overridden:
        logger.warning(f"Advice disagreed with the plan on {overridden} day(s); plan statuses kept")

    today_advice = fixed.get("today_advice")
    if not isinstance(today_advice, dict):
        today_advice = {}
    fixed["today_advice"] = today_advice

    if daily:
        idx = _today_row(plan, today)
        today_advice["should_water"] = daily[idx]["watering_status"]

    logger.info(
        f"Returned {len(daily)} days; today: {today_advice.get('should_water')}"
    )
    return fixed


def _today_row(plan: Plan, today: str) -> int:
    dates = [d.date for d in plan.decisions]
    if today in dates:
        return dates.index(today)
    later = next((i for i, d in enumerate(dates) if d > today), None)
    return later if later is not None else len(dates) - 1
