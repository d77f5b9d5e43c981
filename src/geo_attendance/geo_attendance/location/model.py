from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..core.constants import (
    FALLBACK_MAXIMUM_AGE_MS,
    FALLBACK_TIMEOUT_MS,
    PRIMARY_MAXIMUM_AGE_MS,
    PRIMARY_TIMEOUT_MS,
)
from ..geofence.model import GeoPoint


@dataclass(frozen=True)
class PositionOptions:
    """Mirrors the W3C PositionOptions dictionary."""

    enable_high_accuracy: bool
    timeout_ms: int
    maximum_age_ms: int

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


PRIMARY_OPTIONS = PositionOptions(
    enable_high_accuracy=True,
    timeout_ms=PRIMARY_TIMEOUT_MS,
    maximum_age_ms=PRIMARY_MAXIMUM_AGE_MS,
)

# Less accurate but faster; only used after a failed primary attempt.
FALLBACK_OPTIONS = PositionOptions(
    enable_high_accuracy=False,
    timeout_ms=FALLBACK_TIMEOUT_MS,
    maximum_age_ms=FALLBACK_MAXIMUM_AGE_MS,
)


class PlatformLocationError(Exception):
    """Raw failure reported by a location provider (W3C error codes)."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"location error code {code}")
        self.code = int(code)


class LocationProvider(Protocol):
    async def get_current_position(self, options: PositionOptions) -> GeoPoint:
        raise NotImplementedError
