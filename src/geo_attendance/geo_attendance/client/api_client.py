"""Async client for the attendance HTTP API.

Implements the recorder, status and reverse-geocoder contracts the flow
controller depends on. The login cookie is kept on the underlying
`httpx.AsyncClient`, so one instance serves one employee session.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..attendance.model import AttendanceDayState, AttendanceSubmission
from ..core.exceptions import AuthenticationError, DomainError, GeocodingFailed, SubmissionFailed
from ..geofence.model import GeofenceConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


_PARSE_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return default


class HrmsApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "HrmsApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def login(self, username: str, password: str) -> dict:
        try:
            response = await self._client.post("/api/auth/login", json={"username": username, "password": password})
        except httpx.HTTPError as e:
            raise DomainError(f"Could not reach the attendance server: {e}") from e
        if response.status_code != 200:
            raise AuthenticationError(_error_message(response, "Invalid username or password"))
        try:
            return response.json().get("user", {})
        except _PARSE_ERRORS as e:
            raise DomainError(f"Unreadable login response: {e}") from e

    async def get_today_status(self) -> AttendanceDayState:
        try:
            response = await self._client.get("/api/attendance/status")
        except httpx.HTTPError as e:
            raise DomainError(f"Could not load attendance status: {e}") from e
        if response.status_code == 401:
            raise AuthenticationError(_error_message(response, "Authentication required"))
        if response.is_error:
            raise DomainError(_error_message(response, f"Could not load attendance status (HTTP {response.status_code})"))
        try:
            return AttendanceDayState.from_dict(response.json())
        except _PARSE_ERRORS as e:
            raise DomainError(f"Unreadable attendance status: {e}") from e

    async def get_geofence_config(self) -> GeofenceConfig:
        try:
            response = await self._client.get("/api/geofence")
        except httpx.HTTPError as e:
            raise DomainError(f"Could not load the office boundary: {e}") from e
        if response.is_error:
            raise DomainError(_error_message(response, f"Could not load the office boundary (HTTP {response.status_code})"))
        try:
            data = response.json()
            return GeofenceConfig(
                center_latitude=float(data["latitude"]),
                center_longitude=float(data["longitude"]),
                radius_meters=float(data["radius"]),
                enabled=bool(data.get("enabled", True)),
                required=bool(data.get("required", True)),
                name=str(data.get("name") or "Office Location"),
            )
        except _PARSE_ERRORS as e:
            raise DomainError(f"Unreadable office boundary: {e}") from e

    async def _record(self, path: str, submission: AttendanceSubmission) -> AttendanceDayState:
        logger.debug("POST %s exception=%s", path, submission.location_exception)
        try:
            response = await self._client.post(path, json=submission.to_dict())
        except httpx.HTTPError as e:
            # The request may or may not have reached the server; surface it, never resend.
            raise SubmissionFailed(f"Network error while recording attendance: {e}") from e
        if response.is_error:
            raise SubmissionFailed(
                _error_message(response, f"Attendance was not recorded (HTTP {response.status_code})"),
                status_code=response.status_code,
            )
        try:
            return AttendanceDayState.from_dict(response.json())
        except _PARSE_ERRORS as e:
            # The server accepted the punch; resending could record it twice.
            raise SubmissionFailed(
                "Attendance may have been recorded but the response could not be read. "
                "Check today's status before trying again.",
                status_code=response.status_code,
            ) from e

    async def record_check_in(self, submission: AttendanceSubmission) -> AttendanceDayState:
        return await self._record("/api/attendance/check-in", submission)

    async def record_check_out(self, submission: AttendanceSubmission) -> AttendanceDayState:
        return await self._record("/api/attendance/check-out", submission)

    async def reverse_geocode(self, latitude: float, longitude: float) -> str:
        try:
            response = await self._client.get("/api/geocode/reverse", params={"lat": latitude, "lon": longitude})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GeocodingFailed(f"Geocoding request failed: {e}") from e

        name = data.get("name") if isinstance(data, dict) else None
        if not name:
            raise GeocodingFailed("Geocoding response has no location name")
        return str(name)
