"""
Narrative layer helpers.

The engine decides; a language model explains. This package builds the
assistant payload and schema and reconciles the model's answer with the
plan. It performs no network I/O itself.
"""

from .advice import (
    ADVICE_SYSTEM_PROMPT,
    AdviceConfig,
    advice_response_schema,
    build_advice_payload,
    reconcile_advice,
    today_for_timezone,
)

__all__ = [
    "ADVICE_SYSTEM_PROMPT",
    "AdviceConfig",
    "advice_response_schema",
    "build_advice_payload",
    "reconcile_advice",
    "today_for_timezone",
]
