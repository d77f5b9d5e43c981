"""Great-circle distance and office-boundary membership."""

from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt

from ..core.constants import EARTH_RADIUS_METERS
from .model import GeofenceConfig, GeofenceVerdict, GeoPoint


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Distance in meters between two points on a sphere of mean Earth radius."""
    phi1, phi2 = radians(a.latitude), radians(b.latitude)
    d_phi = radians(b.latitude - a.latitude)
    d_lambda = radians(b.longitude - a.longitude)

    h = sin(d_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(d_lambda / 2) ** 2
    h = min(h, 1.0)  # rounding near antipodes
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


class GeofenceEvaluator:
    """Classifies points against one injected boundary."""

    def __init__(self, config: GeofenceConfig):
        self._config = config

    @property
    def config(self) -> GeofenceConfig:
        return self._config

    def distance(self, point: GeoPoint) -> float:
        return haversine_distance(point, self._config.center)

    def evaluate(self, point: GeoPoint) -> GeofenceVerdict:
        return evaluate(point, self._config)


def evaluate(point: GeoPoint, config: GeofenceConfig) -> GeofenceVerdict:
    # Disabled geofencing always allows the punch.
    if not config.enabled:
        return GeofenceVerdict(point=point, distance_meters=0.0, within_bounds=True)

    distance = haversine_distance(point, config.center)
    return GeofenceVerdict(
        point=point,
        distance_meters=distance,
        within_bounds=distance <= config.radius_meters,
    )
