from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..attendance.model import AttendanceDayState
from ..core.enums import AttendanceAction, FlowState
from ..core.exceptions import DomainError
from ..geofence.model import GeofenceVerdict


@dataclass(frozen=True)
class FlowOutcome:
    """Snapshot returned by every flow operation."""

    state: FlowState
    action: Optional[AttendanceAction] = None
    verdict: Optional[GeofenceVerdict] = None
    day_state: Optional[AttendanceDayState] = None
    error: Optional[DomainError] = None
    used_fallback: bool = False
    ignored: bool = False
    message: str = ""

    @property
    def needs_justification(self) -> bool:
        return self.state is FlowState.AWAITING_JUSTIFICATION

    @property
    def succeeded(self) -> bool:
        return self.state is FlowState.SETTLED
