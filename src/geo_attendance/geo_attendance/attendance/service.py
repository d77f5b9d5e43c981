from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local, to_iso
from ..common.geo_format import format_coordinates
from ..common.validators import optional_text, require_latitude, require_longitude
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ConflictError, ValidationError
from ..users.repository import UserRepository
from .model import AttendanceDayState, AttendanceRecord, AttendanceSubmission
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def submission_from_payload(payload: Optional[Mapping[str, Any]]) -> AttendanceSubmission:
    """Validate a check-in/check-out JSON body."""
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")

    latitude = require_latitude(payload.get("latitude"))
    longitude = require_longitude(payload.get("longitude"))
    location_name = optional_text(payload.get("locationName")) or format_coordinates(latitude, longitude)

    return AttendanceSubmission(
        latitude=latitude,
        longitude=longitude,
        location_name=location_name[:255],
        reason=optional_text(payload.get("reason")),
        location_exception=bool(payload.get("locationException", False)),
    )


class AttendanceService:
    """Records geo-tagged punches: one check-in and one check-out per work date."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository):
        self._attendance = attendance
        self._users = users

    def _require_active_user(self, user_id: int) -> None:
        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            raise ValidationError("Employee does not exist")

    def check_in(self, user_id: int, submission: AttendanceSubmission, *, now: datetime | None = None) -> AttendanceDayState:
        now = now or now_local()
        today = now.date()
        self._require_active_user(user_id)

        if self._attendance.get_for_user_and_date(user_id, today):
            raise ConflictError("You have already checked in today")

        self._attendance.create_checkin(
            user_id=user_id,
            work_date=today,
            check_in_time=now,
            latitude=submission.latitude,
            longitude=submission.longitude,
            location=submission.location_name,
            reason=submission.reason,
            location_exception=submission.location_exception,
        )
        logger.info(
            "Check-in recorded user=%s at %s (%s)%s",
            user_id,
            submission.location_name,
            format_coordinates(submission.latitude, submission.longitude),
            " [location exception]" if submission.location_exception else "",
        )
        return AttendanceDayState(is_checked_in=True, check_in_time=now)

    def check_out(self, user_id: int, submission: AttendanceSubmission, *, now: datetime | None = None) -> AttendanceDayState:
        now = now or now_local()
        today = now.date()
        self._require_active_user(user_id)

        record = self._attendance.get_for_user_and_date(user_id, today)
        if not record:
            raise ConflictError("You have not checked in today")
        if record.check_out_time is not None:
            raise ConflictError("You have already checked out today")

        updated = self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            check_out_time=now,
            latitude=submission.latitude,
            longitude=submission.longitude,
            location=submission.location_name,
            reason=submission.reason,
            location_exception=submission.location_exception,
        )
        if not updated:
            # Another request checked out between our read and write.
            raise ConflictError("You have already checked out today")

        logger.info(
            "Check-out recorded user=%s at %s%s",
            user_id,
            submission.location_name,
            " [location exception]" if submission.location_exception else "",
        )
        return AttendanceDayState(is_checked_in=False, check_in_time=record.check_in_time, check_out_time=now)

    def get_today_status(self, user_id: int, *, today: date | None = None) -> AttendanceDayState:
        today = today or now_local().date()
        return AttendanceDayState.from_record(self._attendance.get_for_user_and_date(user_id, today))

    def get_history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        limit = max(1, min(int(limit), 366))
        return [self._to_dict(r) for r in self._attendance.get_recent_for_user(user_id, limit)]

    def _to_dict(self, r: AttendanceRecord) -> dict:
        return {
            "id": r.attendance_id,
            "date": r.work_date.strftime("%Y-%m-%d"),
            "checkInTime": to_iso(r.check_in_time),
            "checkOutTime": to_iso(r.check_out_time),
            "checkInLocation": r.check_in_location,
            "checkOutLocation": r.check_out_location,
            "reason": r.check_in_reason,
            "checkOutReason": r.check_out_reason,
            "locationException": r.location_exception,
            "status": "complete" if r.check_out_time else "checked_in",
        }
