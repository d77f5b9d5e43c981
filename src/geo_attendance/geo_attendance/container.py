from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_GEOCODER_TIMEOUT
from .database.connection import DBConfig, DatabaseConnection
from .geocoding.service import ReverseGeocodingService
from .geofence.model import GeofenceConfig, geofence_config_from_settings
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService

DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/reverse"


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository

    auth_service: AuthService
    attendance_service: AttendanceService
    geocoding_service: ReverseGeocodingService

    geofence_config: GeofenceConfig


def build_container(*, db_config: dict, settings: Optional[Any] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    auth_service = AuthService(users_repo)
    attendance_service = AttendanceService(attendance_repo, users_repo)
    geocoding_service = ReverseGeocodingService(
        getattr(settings, "GEOCODER_URL", DEFAULT_GEOCODER_URL),
        user_agent=getattr(settings, "GEOCODER_USER_AGENT", "geo-attendance"),
        timeout=float(getattr(settings, "GEOCODER_TIMEOUT", DEFAULT_GEOCODER_TIMEOUT)),
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        auth_service=auth_service,
        attendance_service=attendance_service,
        geocoding_service=geocoding_service,
        geofence_config=geofence_config_from_settings(settings),
    )
