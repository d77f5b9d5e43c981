from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.constants import (
    DEFAULT_OFFICE_LATITUDE,
    DEFAULT_OFFICE_LONGITUDE,
    DEFAULT_OFFICE_NAME,
    DEFAULT_OFFICE_RADIUS_METERS,
)
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class GeoPoint:
    """A captured device position. Accuracy is in meters when known."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None


ZERO_POINT = GeoPoint(latitude=0.0, longitude=0.0, accuracy=0.0)


@dataclass(frozen=True)
class GeofenceConfig:
    """Office boundary: a circle around a center point.

    `enabled=False` turns location checks off entirely; `required=False` lets
    out-of-bounds punches through without a written reason.
    """

    center_latitude: float
    center_longitude: float
    radius_meters: float
    enabled: bool = True
    required: bool = True
    name: str = DEFAULT_OFFICE_NAME

    def __post_init__(self) -> None:
        if self.enabled and not self.radius_meters > 0:
            raise ValidationError("Geofence radius must be positive when geofencing is enabled")

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(latitude=self.center_latitude, longitude=self.center_longitude)


@dataclass(frozen=True)
class GeofenceVerdict:
    point: GeoPoint
    distance_meters: float
    within_bounds: bool


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def geofence_config_from_settings(settings: Any) -> GeofenceConfig:
    """Build the boundary from a settings module's GEOFENCE dict."""
    raw: Mapping[str, Any] = getattr(settings, "GEOFENCE", None) or {}
    return GeofenceConfig(
        center_latitude=float(raw.get("center_latitude", DEFAULT_OFFICE_LATITUDE)),
        center_longitude=float(raw.get("center_longitude", DEFAULT_OFFICE_LONGITUDE)),
        radius_meters=float(raw.get("radius_meters", DEFAULT_OFFICE_RADIUS_METERS)),
        enabled=_as_bool(raw.get("enabled"), True),
        required=_as_bool(raw.get("required"), True),
        name=str(raw.get("name") or DEFAULT_OFFICE_NAME),
    )
