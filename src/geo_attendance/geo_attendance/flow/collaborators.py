from __future__ import annotations

from typing import Protocol

from ..attendance.model import AttendanceDayState, AttendanceSubmission


class AttendanceRecorder(Protocol):
    """Persists punches. Must reject a second check-in or a check-out without a check-in."""

    async def record_check_in(self, submission: AttendanceSubmission) -> AttendanceDayState:
        raise NotImplementedError

    async def record_check_out(self, submission: AttendanceSubmission) -> AttendanceDayState:
        raise NotImplementedError


class AttendanceStatusQuery(Protocol):
    async def get_today_status(self) -> AttendanceDayState:
        raise NotImplementedError


class ReverseGeocoder(Protocol):
    async def reverse_geocode(self, latitude: float, longitude: float) -> str:
        """Place name for a coordinate; raises GeocodingFailed when unknown."""

        raise NotImplementedError
