from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class ConflictError(DomainError):
    """Raised when an action contradicts today's recorded attendance."""


class LocationError(DomainError):
    """Base class for failures to obtain a device position."""

    message = "Unable to retrieve your location."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class PermissionDenied(LocationError):
    message = "Location permission denied. Please enable location services."


class PositionUnavailable(LocationError):
    message = "Location information is unavailable."


class LocationTimeout(LocationError):
    message = "Location request timed out."


class LocationUnsupported(LocationError):
    message = "Geolocation is not supported on this device."


class JustificationMissing(ValidationError):
    """Raised when an out-of-bounds punch is submitted without a reason."""

    def __init__(self, message: str = "You are outside the office area. Please provide a reason."):
        super().__init__(message)


class SubmissionFailed(DomainError):
    """The attendance recording call failed; the punch was not recorded."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GeocodingFailed(DomainError):
    """Reverse geocoding did not produce a location name."""


class FlowStateError(DomainError):
    """Raised when a flow operation is not valid in the current state."""
