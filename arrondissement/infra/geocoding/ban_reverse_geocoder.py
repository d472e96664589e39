"""Reverse geocoding via the French national address base (api-adresse.data.gouv.fr)."""

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
class BanConfig:
    base_url: str
    timeout_seconds: float
    user_agent: str


class BanProperties(pydantic.BaseModel):
    label: str | None = None
    postcode: str | None = None
    citycode: str | None = None
    city: str | None = None
    district: str | None = None


class BanFeature(pydantic.BaseModel):
    type: str = "Feature"
    properties: BanProperties


class BanFeatureCollection(pydantic.BaseModel):
    features: list[BanFeature] = pydantic.Field(default_factory=list)


def postal_code_from_payload(payload: object) -> str | None:
    """Extract the first feature's postcode; zero features raise NoAddressFoundError."""
    try:
        collection = BanFeatureCollection.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise GeocodingUnavailableError(f"ban_unexpected_payload:{exc.error_count()}") from exc
    if not collection.features:
        raise NoAddressFoundError("ban_no_feature")
    return collection.features[0].properties.postcode


class BanReverseGeocoder:
    """Single-result reverse lookup; the HTTP call runs in a worker thread."""

    def __init__(self, config: BanConfig) -> None:
        self._config = config

    def lookup(self, latitude: float, longitude: float) -> str | None:
        checked_coordinates(latitude, longitude)
        url = build_url(
            self._config.base_url,
            "/reverse/",
            {"lat": latitude, "lon": longitude, "limit": 1},
        )
        payload = get_json(
            url,
            headers={"User-Agent": self._config.user_agent, "Accept": "application/json"},
            timeout_seconds=self._config.timeout_seconds,
        )
        postal_code = postal_code_from_payload(payload)
        logger.debug("ban.reverse lat=%s lon=%s postcode=%s", latitude, longitude, postal_code)
        return postal_code

    async def reverse_geocode(self, latitude: float, longitude: float) -> str | None:
        return await asyncio.to_thread(self.lookup, latitude, longitude)
