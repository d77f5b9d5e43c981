from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_float
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date,
    check_in_time, check_in_latitude, check_in_longitude, check_in_location, check_in_reason, check_in_exception,
    check_out_time, check_out_latitude, check_out_longitude, check_out_location, check_out_reason, check_out_exception
"""


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        check_in_time=r["check_in_time"],
        check_in_latitude=optional_float(r.get("check_in_latitude")),
        check_in_longitude=optional_float(r.get("check_in_longitude")),
        check_in_location=r.get("check_in_location"),
        check_in_reason=r.get("check_in_reason"),
        check_in_exception=bool(r.get("check_in_exception")),
        check_out_time=r.get("check_out_time"),
        check_out_latitude=optional_float(r.get("check_out_latitude")),
        check_out_longitude=optional_float(r.get("check_out_longitude")),
        check_out_location=r.get("check_out_location"),
        check_out_reason=r.get("check_out_reason"),
        check_out_exception=bool(r.get("check_out_exception")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND work_date=%s
                """,
                (user_id, work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, work_date, check_in_time,
                        check_in_latitude, check_in_longitude, check_in_location, check_in_reason, check_in_exception
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (user_id, work_date, check_in_time, latitude, longitude, location, reason, int(location_exception)),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            # uq_attendance_user_date
            raise ConflictError("You have already checked in today") from e

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s,
                    check_out_latitude=%s, check_out_longitude=%s,
                    check_out_location=%s, check_out_reason=%s, check_out_exception=%s
                WHERE attendance_id=%s AND check_out_time IS NULL
                """,
                (check_out_time, latitude, longitude, location, reason, int(location_exception), int(attendance_id)),
            )
            return cur.rowcount > 0
