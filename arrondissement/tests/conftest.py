"""Test fixtures shared by unit/integration tests: in-memory location collaborators."""

from __future__ import annotations

import asyncio

import pytest

from arrondissement.resolver.ports import Coordinates, LocationRequestConfig


class FakePermissionGate:
    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self.requests = 0

    def has_fine_location_permission(self) -> bool:
        return self.granted

    async def request_permission(self) -> bool:
        self.requests += 1
        return self.granted


class FakeSubscription:
    def __init__(self) -> None:
        self._future: asyncio.Future[Coordinates] = asyncio.get_running_loop().create_future()
        self.cancel_count = 0

    @property
    def active(self) -> bool:
        return self.cancel_count == 0 and not self._future.done()

    async def next_fix(self) -> Coordinates:
        return await self._future

    def deliver(self, coordinates: Coordinates) -> None:
        if not self._future.done():
            self._future.set_result(coordinates)

    def fail(self, exc: BaseException) -> None:
        if not self._future.done():
            self._future.set_exception(exc)

    def cancel(self) -> None:
        self.cancel_count += 1
        if not self._future.done():
            self._future.cancel()


class FakeLocationProvider:
    def __init__(self) -> None:
        self.last_known: Coordinates | None = None
        self.last_known_error: BaseException | None = None
        self.subscriptions: list[FakeSubscription] = []
        self.configs: list[LocationRequestConfig] = []

    async def get_last_known_location(self) -> Coordinates | None:
        if self.last_known_error is not None:
            raise self.last_known_error
        return self.last_known

    def request_location_updates(self, config: LocationRequestConfig) -> FakeSubscription:
        self.configs.append(config)
        subscription = FakeSubscription()
        self.subscriptions.append(subscription)
        return subscription

    @property
    def active_subscriptions(self) -> int:
        return sum(1 for item in self.subscriptions if item.active)


class FakeReverseGeocoder:
    def __init__(self, postal_code: str | None = "75001") -> None:
        self.postal_code = postal_code
        self.error: BaseException | None = None
        self.block = False
        self.calls: list[tuple[float, float]] = []
        self.pending: asyncio.Future[None] | None = None

    async def reverse_geocode(self, latitude: float, longitude: float) -> str | None:
        self.calls.append((latitude, longitude))
        if self.block:
            self.pending = asyncio.get_running_loop().create_future()
            await self.pending
        if self.error is not None:
            raise self.error
        return self.postal_code


@pytest.fixture
def gate() -> FakePermissionGate:
    return FakePermissionGate()


@pytest.fixture
def provider() -> FakeLocationProvider:
    return FakeLocationProvider()


@pytest.fixture
def geocoder() -> FakeReverseGeocoder:
    return FakeReverseGeocoder()
