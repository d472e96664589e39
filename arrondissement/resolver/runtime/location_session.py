"""Location session runtime: permission check, one location fix, reverse geocode, classify.

One session drives one screen. It owns the only writable ``ResolutionState``
and keeps at most one location subscription and one geocoding call in flight.
Every collaborator failure is converted into a state transition here; nothing
propagates to the presentation layer except misuse of the session itself
(``InvalidTransitionError`` / ``SessionClosedError``).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from arrondissement.infra.observability.logger import get_logger
from arrondissement.resolver.classification.postal_code import classify_postal_code
from arrondissement.resolver.display.display_messages import ErrorKind
from arrondissement.resolver.errors import (
    GeocodingUnavailableError,
    InvalidCoordinatesError,
    LocationPermissionError,
    LocationUnavailableError,
    NoAddressFoundError,
    PermissionLostError,
    SessionClosedError,
)
from arrondissement.resolver.events.event_types import EventName
from arrondissement.resolver.events.replay_buffer import ReplayBuffer
from arrondissement.resolver.orchestration.transition_policy import ResolutionTransitions
from arrondissement.resolver.ports import (
    Coordinates,
    LocationProvider,
    LocationRequestConfig,
    LocationSubscription,
    PermissionGate,
    ReverseGeocoder,
)
from arrondissement.resolver.runtime.resolution_state import (
    ObservableState,
    ResolutionState,
    StateListener,
)

logger = get_logger(__name__)

T = TypeVar("T")


async def _with_timeout(awaitable: Awaitable[T], seconds: float | None) -> T:
    if not seconds or seconds <= 0:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=seconds)


class LocationSession:
    """Resolve the current arrondissement for one presentation screen."""

    def __init__(
        self,
        *,
        session_id: str,
        permission_gate: PermissionGate,
        location_provider: LocationProvider,
        reverse_geocoder: ReverseGeocoder,
        transitions: ResolutionTransitions | None = None,
        request_config: LocationRequestConfig | None = None,
        location_timeout_seconds: float | None = None,
        geocode_timeout_seconds: float | None = None,
        strict_postal_codes: bool = False,
        replay_buffer: ReplayBuffer | None = None,
    ) -> None:
        self.session_id = session_id
        self._permission_gate = permission_gate
        self._location_provider = location_provider
        self._reverse_geocoder = reverse_geocoder
        self._transitions = transitions or ResolutionTransitions()
        self._request_config = request_config or LocationRequestConfig()
        self._location_timeout_seconds = location_timeout_seconds
        self._geocode_timeout_seconds = geocode_timeout_seconds
        self._strict_postal_codes = strict_postal_codes
        self._replay_buffer = replay_buffer
        self._state = ObservableState(self._transitions.initial())
        self._task: asyncio.Task[None] | None = None
        self._subscription: LocationSubscription | None = None
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> ResolutionState:
        return self._state.value

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_active_subscription(self) -> bool:
        return self._subscription is not None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._state.subscribe(listener)

    def start(self) -> None:
        """Begin (or restart) resolution. Must be called from a running event loop."""
        self._ensure_open()
        self._cancel_in_flight()
        state = self.state
        if state.phase == "idle":
            self._apply(self._transitions.start(state), event="session.started")
        else:
            self._apply(self._transitions.restart(state))
        self._check_permission_and_fetch()

    def on_permission_result(self, granted: bool) -> None:
        self._ensure_open()
        logger.info("location_session.permission_result session_id=%s granted=%s", self.session_id, granted)
        state = self.state
        if state.phase not in {"permission_check", "permission_denied"}:
            self._cancel_in_flight()
            if state.phase == "idle":
                self._apply(self._transitions.start(state), event="session.started")
            else:
                self._apply(self._transitions.restart(state))
        if granted:
            self._apply(self._transitions.permission_granted(self.state, from_prompt=True))
            self._launch()
        else:
            self._apply(self._transitions.permission_denied(self.state))

    def retry(self) -> None:
        self._ensure_open()
        next_state = self._transitions.retry(self.state)
        self._cancel_in_flight()
        logger.info("location_session.retry session_id=%s", self.session_id)
        self._apply(next_state)
        self._check_permission_and_fetch()

    def fetch_location(self) -> None:
        """Request a fresh fix, cancelling any outstanding subscription first."""
        self._ensure_open()
        if self.state.phase != "locating":
            self.start()
            return
        self._cancel_in_flight()
        self._launch()

    def stop(self) -> None:
        """Cancel outstanding work; safe to call repeatedly and from any phase."""
        if self._closed:
            return
        self._closed = True
        self._cancel_in_flight()
        logger.info("location_session.stopped session_id=%s phase=%s", self.session_id, self.state.phase)
        self._emit("session.stopped", {"phase": self.state.phase})

    async def wait(self) -> None:
        """Wait until no resolution attempt is in flight."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    def _check_permission_and_fetch(self) -> None:
        if self._permission_gate.has_fine_location_permission():
            self._apply(self._transitions.permission_granted(self.state))
            self._launch()
            return
        logger.info("location_session.permission_missing session_id=%s", self.session_id)
        self._apply(self._transitions.permission_needed(self.state))

    def _launch(self) -> None:
        self._generation += 1
        generation = self._generation
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(
            self._resolve(generation),
            name=f"location-session-{self.session_id}-{generation}",
        )

    def _cancel_in_flight(self) -> None:
        self._release_subscription(self._subscription)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._generation += 1

    def _release_subscription(self, subscription: LocationSubscription | None) -> None:
        if subscription is None or subscription is not self._subscription:
            return
        self._subscription = None
        subscription.cancel()
        logger.debug("location_session.subscription_cancelled session_id=%s", self.session_id)

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    async def _resolve(self, generation: int) -> None:
        coordinates = await self._acquire_location(generation)
        if coordinates is None:
            return
        await self._geocode(generation, coordinates)

    async def _acquire_location(self, generation: int) -> Coordinates | None:
        kind: ErrorKind
        security_error = False
        try:
            coordinates = await _with_timeout(self._read_location(), self._location_timeout_seconds)
        except asyncio.CancelledError:
            raise
        except PermissionLostError as exc:
            logger.warning("location_session.permission_lost session_id=%s error=%s", self.session_id, exc)
            kind = "permission_revoked"
        except LocationPermissionError as exc:
            logger.warning("location_session.location_security session_id=%s error=%s", self.session_id, exc)
            kind = "permission_revoked"
            security_error = True
        except (LocationUnavailableError, asyncio.TimeoutError) as exc:
            logger.warning("location_session.location_unavailable session_id=%s error=%r", self.session_id, exc)
            kind = "location_unavailable"
        except Exception:
            logger.exception("location_session.location_error session_id=%s", self.session_id)
            kind = "location_unavailable"
        else:
            if not self._is_current(generation):
                return None
            logger.info(
                "location_session.location session_id=%s lat=%s lon=%s",
                self.session_id,
                coordinates.latitude,
                coordinates.longitude,
            )
            self._apply(
                self._transitions.location_obtained(self.state, coordinates),
                event="location.obtained",
                data={"latitude": coordinates.latitude, "longitude": coordinates.longitude},
            )
            return coordinates

        if self._is_current(generation):
            self._apply(
                self._transitions.location_failed(self.state, kind, security_error=security_error),
                event="session.failed",
            )
        return None

    async def _read_location(self) -> Coordinates:
        last_known = await self._location_provider.get_last_known_location()
        if last_known is not None:
            return last_known

        logger.info("location_session.request_updates session_id=%s", self.session_id)
        if not self._permission_gate.has_fine_location_permission():
            raise PermissionLostError("permission_lost_before_update_request")
        subscription = self._location_provider.request_location_updates(self._request_config)
        self._subscription = subscription
        try:
            return await subscription.next_fix()
        finally:
            self._release_subscription(subscription)

    async def _geocode(self, generation: int, coordinates: Coordinates) -> None:
        kind: ErrorKind
        try:
            postal_code = await _with_timeout(
                self._reverse_geocoder.reverse_geocode(coordinates.latitude, coordinates.longitude),
                self._geocode_timeout_seconds,
            )
        except asyncio.CancelledError:
            raise
        except NoAddressFoundError:
            logger.info("location_session.no_address session_id=%s", self.session_id)
            kind = "no_address_found"
        except (GeocodingUnavailableError, asyncio.TimeoutError) as exc:
            logger.warning("location_session.geocoder_unavailable session_id=%s error=%r", self.session_id, exc)
            kind = "geocoding_unavailable"
        except InvalidCoordinatesError as exc:
            logger.warning("location_session.invalid_coordinates session_id=%s error=%s", self.session_id, exc)
            kind = "invalid_coordinates"
        except Exception:
            logger.exception("location_session.geocoder_error session_id=%s", self.session_id)
            kind = "geocoding_unavailable"
        else:
            if not self._is_current(generation):
                return
            result = classify_postal_code(postal_code, strict=self._strict_postal_codes)
            logger.info(
                "location_session.geocoded session_id=%s postal_code=%s result=%s",
                self.session_id,
                postal_code,
                result,
            )
            self._apply(
                self._transitions.geocoded(self.state, result),
                event="geocode.completed",
                data={"postal_code": postal_code, "classification": type(result).__name__},
            )
            return

        if self._is_current(generation):
            self._apply(self._transitions.geocoding_failed(self.state, kind), event="session.failed")

    def _apply(
        self,
        state: ResolutionState,
        *,
        event: EventName = "phase.changed",
        data: dict[str, Any] | None = None,
    ) -> None:
        previous = self._state.value
        self._state.publish(state)
        logger.info(
            "location_session.transition session_id=%s from=%s to=%s display=%s error=%s",
            self.session_id,
            previous.phase,
            state.phase,
            state.display_value,
            state.error_kind,
        )
        payload: dict[str, Any] = {
            "from": previous.phase,
            "to": state.phase,
            "display_value": state.display_value,
            "sub_text": state.sub_text,
            "error_kind": state.error_kind,
        }
        payload.update(data or {})
        self._emit(event, payload)

    def _emit(self, event: EventName, data: dict[str, Any]) -> None:
        if self._replay_buffer is not None:
            self._replay_buffer.append(self.session_id, event, data)

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"session_closed:{self.session_id}")
