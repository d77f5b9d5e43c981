from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        latitude: float,
        longitude: float,
        location: str,
        reason: Optional[str] = None,
        location_exception: bool = False,
    ) -> int:
        """Insert today's row. Raises ConflictError if one already exists."""

        raise NotImplementedError

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        latitude: float,
        longitude: float,
        location: str,
        reason: Optional[str] = None,
        location_exception: bool = False,
    ) -> bool:
        """Set the check-out columns; False when the row was already checked out."""

        raise NotImplementedError
