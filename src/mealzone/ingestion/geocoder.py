"""
Geocoding client (Nominatim).

Turns the raw inputs of the checkout address form into `LocationSignal`s:
- forward geocode: typed address text -> coordinate + formatted address
- reverse geocode: coordinate (GPS fix, marker drag) -> formatted address + area name

Any failure (disabled, transport error, non-2xx, unusable payload) is reported as
`GeocodingUnavailable`; the checkout layer treats that as fail-open.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from mealzone.checkout.errors import GeocodingUnavailable
from mealzone.config.settings import Settings
from mealzone.core.http import get_json
from mealzone.domain.models import Coordinate, LocationSignal

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        cfg = self._settings.geocoding
        if not cfg.enabled:
            raise GeocodingUnavailable("geocoding is disabled")
        url = f"{cfg.base_url.rstrip('/')}/{path}"
        try:
            return await get_json(
                url,
                params={"format": "jsonv2", "addressdetails": 1, **params},
                timeout_seconds=cfg.timeout_seconds,
                transport=self._transport,
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geocoding request to %s failed: %s", path, e)
            raise GeocodingUnavailable(str(e) or e.__class__.__name__) from e

    def _area_name(self, address: Any) -> str | None:
        if not isinstance(address, dict):
            return None
        for key in self._settings.geocoding.area_fields:
            value = address.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    async def forward(self, text: str) -> LocationSignal:
        """Geocode address text; raises `GeocodingUnavailable` when nothing usable comes back."""
        params: dict[str, Any] = {"q": text, "limit": 1}
        if self._settings.geocoding.country_codes:
            params["countrycodes"] = ",".join(self._settings.geocoding.country_codes)
        results = await self._get("search", params)
        if not isinstance(results, list) or not results:
            raise GeocodingUnavailable(f"no geocoding result for {text!r}")
        top = results[0]
        try:
            coordinate = Coordinate(lat=float(top["lat"]), lng=float(top["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingUnavailable("geocoding result has no usable coordinate") from e
        return LocationSignal(
            coordinate=coordinate,
            formatted_address=top.get("display_name") or text,
            area_name=self._area_name(top.get("address")),
            source="forward_geocode",
        )

    async def reverse(self, coordinate: Coordinate) -> LocationSignal:
        payload = await self._get("reverse", {"lat": coordinate.lat, "lon": coordinate.lng})
        if not isinstance(payload, dict) or payload.get("error"):
            raise GeocodingUnavailable("reverse geocoding returned no address")
        return LocationSignal(
            coordinate=coordinate,
            formatted_address=payload.get("display_name"),
            area_name=self._area_name(payload.get("address")),
            source="reverse_geocode",
        )
