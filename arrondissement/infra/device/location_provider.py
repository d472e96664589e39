"""Device location provider: fixes are pushed by the device through the API."""

from __future__ import annotations

import asyncio

from arrondissement.infra.observability.logger import get_logger
from arrondissement.resolver.ports import Coordinates, LocationRequestConfig

logger = get_logger(__name__)


class PushedLocationSubscription:
    """Single-fix subscription resolved by the next pushed device fix."""

    def __init__(self, config: LocationRequestConfig) -> None:
        self.config = config
        self._future: asyncio.Future[Coordinates] = asyncio.get_running_loop().create_future()
        self._cancelled = False

    @property
    def active(self) -> bool:
        return not self._cancelled and not self._future.done()

    async def next_fix(self) -> Coordinates:
        return await self._future

    def deliver(self, coordinates: Coordinates) -> bool:
        if not self.active:
            return False
        self._future.set_result(coordinates)
        return True

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if not self._future.done():
            self._future.cancel()


class DeviceLocationProvider:
    """Keeps the last pushed fix and feeds live subscriptions."""

    def __init__(self, *, last_known: Coordinates | None = None) -> None:
        self._last_known = last_known
        self._subscriptions: list[PushedLocationSubscription] = []

    @property
    def last_known(self) -> Coordinates | None:
        return self._last_known

    @property
    def active_subscriptions(self) -> int:
        return sum(1 for item in self._subscriptions if item.active)

    async def get_last_known_location(self) -> Coordinates | None:
        return self._last_known

    def request_location_updates(self, config: LocationRequestConfig) -> PushedLocationSubscription:
        self._subscriptions = [item for item in self._subscriptions if item.active]
        subscription = PushedLocationSubscription(config)
        self._subscriptions.append(subscription)
        logger.debug(
            "device_location.subscribed interval_ms=%s min_interval_ms=%s max_delay_ms=%s",
            config.interval_ms,
            config.min_update_interval_ms,
            config.max_update_delay_ms,
        )
        return subscription

    def push_fix(self, coordinates: Coordinates) -> int:
        """Store the fix as last known and deliver it to live subscriptions."""
        self._last_known = coordinates
        delivered = 0
        for subscription in self._subscriptions:
            if subscription.deliver(coordinates):
                delivered += 1
        self._subscriptions = [item for item in self._subscriptions if item.active]
        return delivered

    def clear_last_known(self) -> None:
        self._last_known = None
