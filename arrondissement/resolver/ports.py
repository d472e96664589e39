"""Boundary contracts for permission, location and reverse-geocoding collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from arrondissement.resolver.errors import InvalidCoordinatesError

LocationPriority = Literal["high_accuracy", "balanced", "low_power"]


@dataclass(frozen=True)
class Coordinates:
    """WGS84 position obtained from a location provider."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude_out_of_range:{self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude_out_of_range:{self.longitude}")


def checked_coordinates(latitude: float, longitude: float) -> Coordinates:
    try:
        return Coordinates(latitude=latitude, longitude=longitude)
    except ValueError as exc:
        raise InvalidCoordinatesError(str(exc)) from exc


@dataclass(frozen=True)
class LocationRequestConfig:
    """Parameters for a live location update request."""

    interval_ms: int = 10000
    min_update_interval_ms: int = 5000
    max_update_delay_ms: int = 20000
    priority: LocationPriority = "high_accuracy"
    wait_for_accurate_location: bool = False


class PermissionGate(Protocol):
    def has_fine_location_permission(self) -> bool: ...

    async def request_permission(self) -> bool: ...


class LocationSubscription(Protocol):
    """Handle for one live update request; the session reads a single fix then cancels it."""

    async def next_fix(self) -> Coordinates: ...

    def cancel(self) -> None: ...


class LocationProvider(Protocol):
    async def get_last_known_location(self) -> Coordinates | None: ...

    def request_location_updates(self, config: LocationRequestConfig) -> LocationSubscription: ...


class ReverseGeocoder(Protocol):
    async def reverse_geocode(self, latitude: float, longitude: float) -> str | None: ...
