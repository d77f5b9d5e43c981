from __future__ import annotations

from ..core.constants import LABEL_DECIMALS


def format_coordinates(latitude: float, longitude: float, *, decimals: int = LABEL_DECIMALS) -> str:
    """Human-readable "lat, lon" label used when no place name is available."""
    return f"{latitude:.{decimals}f}, {longitude:.{decimals}f}"
