from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceAction(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class DayProgress(str, Enum):
    """Where an employee stands for today, derived once from the day state."""

    NOT_CHECKED_IN = "not_checked_in"
    CHECKED_IN_ONLY = "checked_in"
    DAY_COMPLETE = "complete"


class FlowState(str, Enum):
    IDLE = "idle"
    LOCATING_PRIMARY = "locating_primary"
    AWAITING_JUSTIFICATION = "awaiting_justification"
    LOCATING_FALLBACK = "locating_fallback"
    SUBMITTING = "submitting"
    SETTLED = "settled"
    FAILED = "failed"
