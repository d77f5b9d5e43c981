"""Reverse geocoding against a Nominatim-compatible `/reverse` endpoint."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from ..common.geo_format import format_coordinates
from ..core.constants import ADDRESS_DECIMALS, DEFAULT_GEOCODER_TIMEOUT
from ..core.exceptions import GeocodingFailed
from .model import LocationDetails

logger = logging.getLogger(__name__)

_CITY_KEYS = ("city", "town", "village", "suburb", "county", "state_district")


class ReverseGeocodingService:
    def __init__(
        self,
        base_url: str,
        *,
        user_agent: str,
        timeout: float = DEFAULT_GEOCODER_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self._base_url = base_url
        self._user_agent = user_agent
        self._timeout = timeout
        self._client = client

    def _get(self, params: dict) -> httpx.Response:
        headers = {"User-Agent": self._user_agent, "Accept": "application/json"}
        if self._client is not None:
            return self._client.get(self._base_url, params=params, headers=headers, timeout=self._timeout)
        with httpx.Client(timeout=self._timeout) as client:
            return client.get(self._base_url, params=params, headers=headers)

    def reverse(self, latitude: float, longitude: float) -> LocationDetails:
        params = {"format": "jsonv2", "lat": latitude, "lon": longitude, "zoom": 18, "addressdetails": 1}
        try:
            response = self._get(params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Reverse geocoding failed for %s: %s", format_coordinates(latitude, longitude), e)
            raise GeocodingFailed("Geocoding request failed") from e

        if not isinstance(data, Mapping) or data.get("error"):
            message = data.get("error") if isinstance(data, Mapping) else "unexpected response"
            raise GeocodingFailed(f"Geocoding request failed: {message}")

        return self._to_details(data, latitude, longitude)

    def _to_details(self, data: Mapping[str, Any], latitude: float, longitude: float) -> LocationDetails:
        address: Mapping[str, Any] = data.get("address") or {}
        display_name = data.get("display_name") or ""
        name = (
            data.get("name")
            or address.get("amenity")
            or address.get("building")
            or address.get("road")
            or display_name.split(",")[0].strip()
            or f"Location ({format_coordinates(latitude, longitude, decimals=ADDRESS_DECIMALS)})"
        )
        city = next((address[k] for k in _CITY_KEYS if address.get(k)), "Unknown City")
        return LocationDetails(
            name=str(name),
            address=display_name or f"Latitude: {latitude}, Longitude: {longitude}",
            city=str(city),
            country=str(address.get("country") or "Unknown Country"),
        )
