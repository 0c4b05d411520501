#!/usr/bin/env python3
"""
Water Gnome Plan CLI

Runs the watering engine over a JSON file of daily observations and prints
the plan. Handy for checking a policy change against a saved forecast.

Usage:
    # Plan the week with the garden preset
    python -m water_gnome.scripts.plan_week forecast.json --today 2025-08-10

    # Keep today's answer stable against the last run
    python -m water_gnome.scripts.plan_week forecast.json --previous plan.json --out plan.json

    # Custom thresholds, JSON output
    python -m water_gnome.scripts.plan_week forecast.json --policy policy.json --json

Copyright (c) 2025 Water Gnome contributors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from water_gnome.core.engine import PlanResult, plan_watering
from water_gnome.core.errors import WaterGnomeError
from water_gnome.core.policy import GARDEN_POLICY
from water_gnome.llm.advice import today_for_timezone

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def load_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_observations(path: str) -> List[dict]:
    """Observations as a bare list, or under a ``daily`` key as providers return them."""
    data = load_json(path)
    if isinstance(data, dict):
        data = data.get("daily", [])
    return data


def plan_table(result: PlanResult) -> pd.DataFrame:
    rows = []
    for day, decision in zip(result.plan.weather, result.plan.decisions):
        rows.append({
            "day": result.hints.labels.get(day.date, day.date),
            "hi": day.hi,
            "lo": day.lo,
            "rain": day.rain,
            "pop": day.pop,
            "humidity": day.humidity,
            "rain_past3": day.rain_past3,
            "rain_next3": day.rain_next3,
            "score": decision.score,
            "water": decision.status.value,
        })
    return pd.DataFrame(rows)


def print_plan(result: PlanResult) -> None:
    hints = result.hints
    today = result.today_decision
    print(f"\n{'='*80}")
    print(f"WATERING PLAN (today {result.today})")
    print(f"{'='*80}")
    print()
    print(plan_table(result).to_string(index=False))
    print()
    if today is not None:
        print(f"Water today:        {today.status.value}")
    print(f"Soaks next 7 days:  {hints.yes_count_next7}")
    if hints.candidate_second_yes:
        print(f"Possible 2nd soak:  {hints.labels[hints.candidate_second_yes]}")
    for callout in hints.callouts:
        print(f"  - {hints.labels.get(callout.date, callout.date)}: {callout.reason}")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Water Gnome - plan garden watering from a daily forecast"
    )
    parser.add_argument(
        "observations",
        help="JSON file with daily observations (list, or object with a 'daily' list)"
    )
    parser.add_argument(
        "--today",
        help="Local date YYYY-MM-DD (default: today in WATER_GNOME_TZ)"
    )
    parser.add_argument(
        "--policy",
        help="JSON file with policy thresholds (default: garden preset)"
    )
    parser.add_argument(
        "--previous",
        help="Plan snapshot from the last run, for a stable 'today'"
    )
    parser.add_argument(
        "--out",
        help="Write this run's plan snapshot here"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON instead of a table"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose logging"
    )
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        observations = load_observations(args.observations)
        policy = load_json(args.policy) if args.policy else GARDEN_POLICY
        previous = load_json(args.previous) if args.previous else None
        today = args.today or today_for_timezone()
        result = plan_watering(observations, policy, today=today, previous=previous)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read input: {e}")
        return 1
    except WaterGnomeError as e:
        logger.error(f"{e.code}: {e}")
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_plan(result)

    if args.out:
        Path(args.out).write_text(json.dumps(result.plan.to_dict(), indent=2), encoding="utf-8")
        logger.info(f"Saved plan snapshot to {args.out}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
