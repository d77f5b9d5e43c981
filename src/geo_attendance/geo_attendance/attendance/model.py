from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import from_iso, to_iso
from ..core.enums import DayProgress


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one work date."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in_time: datetime
    check_in_latitude: Optional[float] = None
    check_in_longitude: Optional[float] = None
    check_in_location: Optional[str] = None
    check_in_reason: Optional[str] = None
    check_in_exception: bool = False
    check_out_time: Optional[datetime] = None
    check_out_latitude: Optional[float] = None
    check_out_longitude: Optional[float] = None
    check_out_location: Optional[str] = None
    check_out_reason: Optional[str] = None
    check_out_exception: bool = False

    @property
    def location_exception(self) -> bool:
        return self.check_in_exception or self.check_out_exception


@dataclass(frozen=True)
class AttendanceDayState:
    """Today's check-in/check-out timestamps as the server last reported them."""

    is_checked_in: bool = False
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None

    @property
    def progress(self) -> DayProgress:
        if self.check_in_time is None and not self.is_checked_in:
            return DayProgress.NOT_CHECKED_IN
        if self.check_out_time is None:
            return DayProgress.CHECKED_IN_ONLY
        return DayProgress.DAY_COMPLETE

    @classmethod
    def from_record(cls, record: Optional[AttendanceRecord]) -> "AttendanceDayState":
        if record is None:
            return cls()
        return cls(
            is_checked_in=record.check_out_time is None,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
        )

    def to_dict(self) -> dict:
        return {
            "isCheckedIn": self.is_checked_in,
            "checkInTime": to_iso(self.check_in_time),
            "checkOutTime": to_iso(self.check_out_time),
            "todayStatus": self.progress.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttendanceDayState":
        return cls(
            is_checked_in=bool(data.get("isCheckedIn", False)),
            check_in_time=from_iso(data.get("checkInTime")),
            check_out_time=from_iso(data.get("checkOutTime")),
        )


@dataclass(frozen=True)
class AttendanceSubmission:
    """Payload of a check-in or check-out call."""

    latitude: float
    longitude: float
    location_name: str
    reason: Optional[str] = None
    location_exception: bool = False

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "locationName": self.location_name,
            "reason": self.reason,
            "locationException": self.location_exception,
        }
