"""One-shot position acquisition with failures normalized to typed errors.

The probe never retries on its own: the flow controller decides whether a
failed primary attempt earns a fallback attempt, because the fallback point
carries different geofence consequences.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..core.exceptions import (
    LocationError,
    LocationTimeout,
    LocationUnsupported,
    PermissionDenied,
    PositionUnavailable,
)
from ..geofence.model import GeoPoint
from .model import FALLBACK_OPTIONS, PRIMARY_OPTIONS, LocationProvider, PlatformLocationError, PositionOptions

logger = logging.getLogger(__name__)

_ERRORS_BY_CODE = {
    PlatformLocationError.PERMISSION_DENIED: PermissionDenied,
    PlatformLocationError.POSITION_UNAVAILABLE: PositionUnavailable,
    PlatformLocationError.TIMEOUT: LocationTimeout,
}


def is_fallback_eligible(error: LocationError) -> bool:
    """Transient failures may be retried once with low accuracy."""
    return isinstance(error, (PositionUnavailable, LocationTimeout))


class LocationProbe:
    def __init__(self, provider: Optional[LocationProvider]):
        self._provider = provider

    async def acquire(self, options: PositionOptions) -> GeoPoint:
        if self._provider is None:
            raise LocationUnsupported()

        try:
            point = await asyncio.wait_for(
                self._provider.get_current_position(options),
                timeout=options.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise LocationTimeout() from None
        except PlatformLocationError as e:
            error_cls = _ERRORS_BY_CODE.get(e.code, PositionUnavailable)
            logger.debug("Location provider failed with code %s: %s", e.code, e)
            raise error_cls() from e
        except NotImplementedError:
            raise LocationUnsupported() from None

        logger.debug(
            "Position acquired (high_accuracy=%s): %.6f, %.6f ±%s m",
            options.enable_high_accuracy,
            point.latitude,
            point.longitude,
            point.accuracy,
        )
        return point

    async def acquire_primary(self) -> GeoPoint:
        return await self.acquire(PRIMARY_OPTIONS)

    async def acquire_fallback(self) -> GeoPoint:
        return await self.acquire(FALLBACK_OPTIONS)
