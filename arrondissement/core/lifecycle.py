"""Lifecycle hooks for startup diagnostics and session teardown."""

from __future__ import annotations

from arrondissement.core.container import AppContainer
from arrondissement.infra.observability.logger import get_logger

logger = get_logger(__name__)


def on_startup(container: AppContainer) -> None:
    settings = container.settings
    logger.info(
        "Resolver ready: geocoder=%s strict_postal_codes=%s location_timeout=%s geocode_timeout=%s",
        settings.geocoder_provider,
        settings.strict_postal_codes,
        settings.location_timeout_seconds,
        settings.geocode_timeout_seconds,
    )


def on_shutdown(container: AppContainer) -> None:
    stopped = container.sessions.stop_all()
    logger.info("Arrondissement resolver shutdown complete; stopped %s session(s).", stopped)
