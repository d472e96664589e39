"""Reverse geocoding via OpenStreetMap Nominatim."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pydantic

from arrondissement.infra.geocoding.http_json import build_url, get_json
from arrondissement.infra.observability.logger import get_logger
from arrondissement.resolver.errors import GeocodingUnavailableError, NoAddressFoundError
from arrondissement.resolver.ports import checked_coordinates

logger = get_logger(__name__)


@dataclass(frozen=True)
class NominatimConfig:
    base_url: str
    timeout_seconds: float
    user_agent: str


class NominatimAddress(pydantic.BaseModel):
    postcode: str | None = None
    city: str | None = None
    suburb: str | None = None
    country_code: str | None = None


class NominatimReverseResult(pydantic.BaseModel):
    error: str | None = None
    display_name: str | None = None
    address: NominatimAddress | None = None


def postal_code_from_payload(payload: object) -> str | None:
    try:
        result = NominatimReverseResult.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise GeocodingUnavailableError(f"nominatim_unexpected_payload:{exc.error_count()}") from exc
    # Nominatim answers 200 with an "error" field when nothing is found.
    if result.error or result.address is None:
        raise NoAddressFoundError(result.error or "nominatim_no_address")
    return result.address.postcode


class NominatimReverseGeocoder:
    """Nominatim usage policy requires an identifying User-Agent."""

    def __init__(self, config: NominatimConfig) -> None:
        self._config = config

    def lookup(self, latitude: float, longitude: float) -> str | None:
        checked_coordinates(latitude, longitude)
        url = build_url(
            self._config.base_url,
            "/reverse",
            {
                "format": "jsonv2",
                "lat": latitude,
                "lon": longitude,
                "addressdetails": 1,
                "zoom": 18,
            },
        )
        payload = get_json(
            url,
            headers={"User-Agent": self._config.user_agent, "Accept-Language": "fr,en;q=0.8"},
            timeout_seconds=self._config.timeout_seconds,
        )
        postal_code = postal_code_from_payload(payload)
        logger.debug("nominatim.reverse lat=%s lon=%s postcode=%s", latitude, longitude, postal_code)
        return postal_code

    async def reverse_geocode(self, latitude: float, longitude: float) -> str | None:
        return await asyncio.to_thread(self.lookup, latitude, longitude)
