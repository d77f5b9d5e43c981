from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Any) -> Optional[str]:
    """Blank strings are stored as NULL."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_coordinate(value: Any, field_name: str, *, bound: float) -> float:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}") from None
    if number != number or not (-bound <= number <= bound):
        raise ValidationError(f"{field_name} must be between -{bound:g} and {bound:g}")
    return number


def require_latitude(value: Any) -> float:
    return require_coordinate(value, "latitude", bound=90)


def require_longitude(value: Any) -> float:
    return require_coordinate(value, "longitude", bound=180)
