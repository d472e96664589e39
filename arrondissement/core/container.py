"""Composition layer: build and hold long-lived service objects for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass

from arrondissement.core.config import Settings
from arrondissement.infra.device.location_provider import DeviceLocationProvider
from arrondissement.infra.device.permission_gate import DevicePermissionGate
from arrondissement.infra.geocoding.ban_reverse_geocoder import BanConfig, BanReverseGeocoder
from arrondissement.infra.geocoding.nominatim_reverse_geocoder import (
    NominatimConfig,
    NominatimReverseGeocoder,
)
from arrondissement.resolver.display.display_messages import DisplayMessages
from arrondissement.resolver.events.replay_buffer import ReplayBuffer
from arrondissement.resolver.orchestration.transition_policy import ResolutionTransitions
from arrondissement.resolver.ports import LocationRequestConfig, ReverseGeocoder
from arrondissement.resolver.runtime.location_session import LocationSession
from arrondissement.resolver.runtime.session_registry import SessionRegistry


@dataclass
class AppContainer:
    """Container object attached to FastAPI app state."""

    settings: Settings
    messages: DisplayMessages
    reverse_geocoder: ReverseGeocoder
    replay_buffer: ReplayBuffer
    sessions: SessionRegistry


def build_reverse_geocoder(settings: Settings) -> ReverseGeocoder:
    if settings.geocoder_provider == "nominatim":
        return NominatimReverseGeocoder(
            NominatimConfig(
                base_url=settings.nominatim_base_url,
                timeout_seconds=settings.geocoder_timeout_seconds,
                user_agent=settings.geocoder_user_agent,
            )
        )
    if settings.geocoder_provider != "ban":
        raise ValueError(f"unknown_geocoder_provider:{settings.geocoder_provider}")
    return BanReverseGeocoder(
        BanConfig(
            base_url=settings.ban_base_url,
            timeout_seconds=settings.geocoder_timeout_seconds,
            user_agent=settings.geocoder_user_agent,
        )
    )


def build_container(
    settings: Settings,
    *,
    reverse_geocoder: ReverseGeocoder | None = None,
) -> AppContainer:
    """Construct runtime dependencies in one place."""
    messages = DisplayMessages.from_yaml(settings.display_messages_file)
    geocoder = reverse_geocoder or build_reverse_geocoder(settings)
    replay_buffer = ReplayBuffer(max_events_per_session=settings.replay_buffer_size)
    transitions = ResolutionTransitions(messages)
    request_config = LocationRequestConfig(
        interval_ms=settings.location_interval_ms,
        min_update_interval_ms=settings.location_min_update_interval_ms,
        max_update_delay_ms=settings.location_max_update_delay_ms,
    )

    def session_factory(
        session_id: str,
        permission_gate: DevicePermissionGate,
        location_provider: DeviceLocationProvider,
    ) -> LocationSession:
        return LocationSession(
            session_id=session_id,
            permission_gate=permission_gate,
            location_provider=location_provider,
            reverse_geocoder=geocoder,
            transitions=transitions,
            request_config=request_config,
            location_timeout_seconds=settings.location_timeout_seconds,
            geocode_timeout_seconds=settings.geocode_timeout_seconds,
            strict_postal_codes=settings.strict_postal_codes,
            replay_buffer=replay_buffer,
        )

    sessions = SessionRegistry(
        factory=session_factory,
        replay_buffer=replay_buffer,
        permission_granted_by_default=settings.permission_granted_by_default,
        idle_ttl_seconds=settings.session_idle_ttl_seconds,
    )
    return AppContainer(
        settings=settings,
        messages=messages,
        reverse_geocoder=geocoder,
        replay_buffer=replay_buffer,
        sessions=sessions,
    )
