from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from src.geo_attendance.geo_attendance.attendance.model import AttendanceRecord, AttendanceSubmission
from src.geo_attendance.geo_attendance.attendance.service import AttendanceService, submission_from_payload
from src.geo_attendance.geo_attendance.core.enums import DayProgress, Role
from src.geo_attendance.geo_attendance.core.exceptions import ConflictError, ValidationError
from src.geo_attendance.geo_attendance.users.model import User


class FakeUsersRepo:
    def __init__(self, users):
        self._users = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))

    def get_by_username(self, username):
        return next((u for u in self._users.values() if u.username == username), None)


class FakeAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self._rows: dict[int, AttendanceRecord] = {}
        self.stale_checkout = False

    def get_recent_for_user(self, user_id, limit):
        rows = [r for r in self._rows.values() if r.user_id == user_id]
        return sorted(rows, key=lambda r: r.work_date, reverse=True)[:limit]

    def get_for_user_and_date(self, user_id, work_date):
        return next((r for r in self._rows.values() if r.user_id == user_id and r.work_date == work_date), None)

    def create_checkin(self, *, user_id, work_date, check_in_time, latitude, longitude, location, reason=None, location_exception=False):
        if self.get_for_user_and_date(user_id, work_date):
            raise ConflictError("You have already checked in today")
        aid = self._next_id
        self._next_id += 1
        self._rows[aid] = AttendanceRecord(
            attendance_id=aid,
            user_id=user_id,
            work_date=work_date,
            check_in_time=check_in_time,
            check_in_latitude=latitude,
            check_in_longitude=longitude,
            check_in_location=location,
            check_in_reason=reason,
            check_in_exception=location_exception,
        )
        return aid

    def update_checkout(self, *, attendance_id, check_out_time, latitude, longitude, location, reason, location_exception):
        row = self._rows.get(attendance_id)
        if row is None or row.check_out_time is not None or self.stale_checkout:
            return False
        self._rows[attendance_id] = replace(
            row,
            check_out_time=check_out_time,
            check_out_latitude=latitude,
            check_out_longitude=longitude,
            check_out_location=location,
            check_out_reason=reason,
            check_out_exception=location_exception,
        )
        return True


EMPLOYEE = User(user_id=1, full_name="Demo Employee", username="employee", password_hash="x", role=Role.EMPLOYEE)
FORMER = User(user_id=2, full_name="Former", username="former", password_hash="x", role=Role.EMPLOYEE, is_active=False)

AT_OFFICE = AttendanceSubmission(latitude=25.6146836, longitude=85.1126175, location_name="Office")
AWAY = AttendanceSubmission(
    latitude=25.62, longitude=85.13, location_name="Client site", reason="Client site visit", location_exception=True
)


@pytest.fixture
def repo():
    return FakeAttendanceRepo()


@pytest.fixture
def svc(repo):
    return AttendanceService(repo, FakeUsersRepo([EMPLOYEE, FORMER]))


def test_check_in_records_location(svc, repo, fixed_now):
    state = svc.check_in(1, AT_OFFICE, now=fixed_now)

    assert state.is_checked_in is True
    assert state.progress is DayProgress.CHECKED_IN_ONLY
    rec = repo.get_for_user_and_date(1, fixed_now.date())
    assert rec.check_in_time == fixed_now
    assert rec.check_in_location == "Office"
    assert rec.check_in_exception is False


def test_second_check_in_same_day_conflicts(svc, fixed_now):
    svc.check_in(1, AT_OFFICE, now=fixed_now)

    with pytest.raises(ConflictError, match="already checked in"):
        svc.check_in(1, AT_OFFICE, now=fixed_now + timedelta(hours=1))


def test_check_out_without_check_in_conflicts(svc, fixed_now):
    with pytest.raises(ConflictError, match="not checked in"):
        svc.check_out(1, AT_OFFICE, now=fixed_now)


def test_check_out_completes_day_and_keeps_reason(svc, repo, fixed_now):
    svc.check_in(1, AT_OFFICE, now=fixed_now)
    later = fixed_now + timedelta(hours=9)

    state = svc.check_out(1, AWAY, now=later)

    assert state.progress is DayProgress.DAY_COMPLETE
    assert state.check_in_time == fixed_now
    rec = repo.get_for_user_and_date(1, fixed_now.date())
    assert rec.check_out_time == later
    assert rec.check_out_reason == "Client site visit"
    assert rec.location_exception is True


def test_double_check_out_conflicts(svc, fixed_now):
    svc.check_in(1, AT_OFFICE, now=fixed_now)
    svc.check_out(1, AT_OFFICE, now=fixed_now + timedelta(hours=8))

    with pytest.raises(ConflictError, match="already checked out"):
        svc.check_out(1, AT_OFFICE, now=fixed_now + timedelta(hours=9))


def test_lost_checkout_race_conflicts(svc, repo, fixed_now):
    svc.check_in(1, AT_OFFICE, now=fixed_now)
    repo.stale_checkout = True

    with pytest.raises(ConflictError):
        svc.check_out(1, AT_OFFICE, now=fixed_now + timedelta(hours=8))


def test_inactive_or_unknown_user_rejected(svc, fixed_now):
    with pytest.raises(ValidationError):
        svc.check_in(2, AT_OFFICE, now=fixed_now)
    with pytest.raises(ValidationError):
        svc.check_in(99, AT_OFFICE, now=fixed_now)


def test_today_status_reflects_record(svc, fixed_now):
    today = fixed_now.date()
    assert svc.get_today_status(1, today=today).progress is DayProgress.NOT_CHECKED_IN

    svc.check_in(1, AT_OFFICE, now=fixed_now)

    assert svc.get_today_status(1, today=today).to_dict() == {
        "isCheckedIn": True,
        "checkInTime": fixed_now.isoformat(),
        "checkOutTime": None,
        "todayStatus": "checked_in",
    }


def test_history_is_newest_first_and_clamped(svc, fixed_now):
    for days_ago in range(3):
        svc.check_in(1, AT_OFFICE, now=fixed_now - timedelta(days=days_ago))

    history = svc.get_history(1, limit=2)
    assert [h["date"] for h in history] == ["2025-01-06", "2025-01-05"]
    assert len(svc.get_history(1, limit=0)) == 1


def test_payload_defaults_location_name_to_coordinates():
    submission = submission_from_payload({"latitude": "25.61468", "longitude": 85.11262, "reason": "  "})

    assert submission.location_name == "25.6147, 85.1126"
    assert submission.reason is None
    assert submission.location_exception is False


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {},
        {"latitude": 91, "longitude": 0},
        {"latitude": 0, "longitude": -181},
        {"latitude": "abc", "longitude": 0},
        {"latitude": True, "longitude": 0},
    ],
)
def test_payload_rejects_bad_coordinates(payload):
    with pytest.raises(ValidationError):
        submission_from_payload(payload)


def test_payload_truncates_long_location_names():
    submission = submission_from_payload({"latitude": 1, "longitude": 2, "locationName": "x" * 300})

    assert len(submission.location_name) == 255
