"""
Water Gnome error types.

Every error raised by the engine derives from WaterGnomeError and carries
a short machine code plus a details dict, so callers (an API route, a CLI)
can map failures without parsing messages.
"""

from __future__ import annotations

from typing import Any, Optional


class WaterGnomeError(Exception):
    """Base exception for watering engine errors."""

    def __init__(self, message: str, code: str = "UNKNOWN", details: Optional[dict] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": str(self), "code": self.code, "details": self.details}


class ValidationError(WaterGnomeError):
    """An observation could not be validated (bad or missing date, bad field)."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class EmptyInputError(ValidationError):
    """No observations were supplied."""

    def __init__(self, message: str = "At least one daily observation is required"):
        super().__init__(message)
        self.code = "EMPTY_INPUT"


class ConfigurationError(WaterGnomeError):
    """The watering policy is missing keys or holds non-numeric values."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class PlannerIntegrityError(WaterGnomeError):
    """The planner produced a plan that breaks its own guarantees."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, code="PLANNER_INTEGRITY", details=details)
