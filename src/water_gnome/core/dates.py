"""
Date helpers for the watering planner.

All dates travel through the engine as ISO ``YYYY-MM-DD`` strings so that
lexicographic order equals calendar order. These helpers do the calendar
arithmetic: day gaps, ISO week keys and the short labels handed to the
narrative layer.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Tuple, Union

DateLike = Union[str, date]

# Fixed US-English abbreviations; locale handling belongs to the caller
WEEKDAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def parse_iso_date(value: DateLike) -> date:
    """Parse a strict ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) != 10:
        raise ValueError(f"Expected an ISO date (YYYY-MM-DD), got {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def to_iso(value: DateLike) -> str:
    return parse_iso_date(value).isoformat()


def days_between(later: DateLike, earlier: DateLike) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (negative if reversed)."""
    return (parse_iso_date(later) - parse_iso_date(earlier)).days


def iso_week_key(value: DateLike) -> Tuple[int, int]:
    """(ISO year, ISO week) so week 1 of one year never collides with another's."""
    iso = parse_iso_date(value).isocalendar()
    return iso[0], iso[1]


def short_label(value: DateLike) -> str:
    """Display label like ``Sun 8/10``."""
    d = parse_iso_date(value)
    return f"{WEEKDAY_ABBR[d.weekday()]} {d.month}/{d.day}"
