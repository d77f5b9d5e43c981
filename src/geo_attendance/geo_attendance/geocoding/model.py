from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class LocationDetails:
    name: str
    address: str
    city: str
    country: str

    def to_dict(self) -> dict:
        return asdict(self)
