from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..geofence.model import GeoPoint
from .model import PlatformLocationError, PositionOptions


@dataclass(frozen=True)
class StaticLocationProvider:
    """Reports a fixed position: a kiosk install or coordinates given by the caller.

    A low-accuracy request is served even when the reported accuracy is poor;
    a high-accuracy request above `max_high_accuracy_error` is reported as
    unavailable, matching how devices refuse an imprecise fix in that mode.
    """

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    max_high_accuracy_error: Optional[float] = None

    async def get_current_position(self, options: PositionOptions) -> GeoPoint:
        if (
            options.enable_high_accuracy
            and self.max_high_accuracy_error is not None
            and self.accuracy is not None
            and self.accuracy > self.max_high_accuracy_error
        ):
            raise PlatformLocationError(
                PlatformLocationError.POSITION_UNAVAILABLE,
                f"accuracy {self.accuracy:.0f}m exceeds {self.max_high_accuracy_error:.0f}m",
            )
        return GeoPoint(latitude=self.latitude, longitude=self.longitude, accuracy=self.accuracy)
