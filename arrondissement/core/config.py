"""Configuration layer: load runtime settings from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _resolve_path(path_like: str) -> Path:
    candidate = Path(path_like)
    if candidate.is_absolute():
        return candidate
    if candidate.exists():
        return candidate
    project_root = Path(__file__).resolve().parents[2]
    rooted = project_root / candidate
    if rooted.exists():
        return rooted
    return candidate


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Immutable application settings used across API/runtime layers."""

    app_name: str = "Arrondissement Resolver API"
    app_version: str = "0.1.0"
    env: str = "dev"
    log_level: str = "INFO"
    access_log: bool = True
    host: str = "0.0.0.0"
    port: int = 8000
    cors_allow_origins: str = "http://localhost:5173,http://127.0.0.1:5173"
    replay_buffer_size: int = 200
    sse_keepalive_seconds: float = 1.0
    sse_max_wait_seconds: int = 20
    geocoder_provider: str = "ban"
    ban_base_url: str = "https://api-adresse.data.gouv.fr"
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    geocoder_user_agent: str = "arrondissement-resolver/0.1.0"
    geocoder_timeout_seconds: float = 8.0
    location_interval_ms: int = 10000
    location_min_update_interval_ms: int = 5000
    location_max_update_delay_ms: int = 20000
    location_timeout_seconds: float = 60.0
    geocode_timeout_seconds: float = 15.0
    strict_postal_codes: bool = False
    display_messages_file: Path = Path("config/display_messages.yaml")
    permission_granted_by_default: bool = False
    session_idle_ttl_seconds: float = 900.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from process env with deterministic defaults."""
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            app_version=os.getenv("APP_VERSION", cls.app_version),
            env=os.getenv("APP_ENV", cls.env),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            access_log=_env_bool("ACCESS_LOG", cls.access_log),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", str(cls.port))),
            cors_allow_origins=os.getenv("CORS_ALLOW_ORIGINS", cls.cors_allow_origins),
            replay_buffer_size=int(os.getenv("REPLAY_BUFFER_SIZE", str(cls.replay_buffer_size))),
            sse_keepalive_seconds=float(
                os.getenv("SSE_KEEPALIVE_SECONDS", str(cls.sse_keepalive_seconds))
            ),
            sse_max_wait_seconds=int(
                os.getenv("SSE_MAX_WAIT_SECONDS", str(cls.sse_max_wait_seconds))
            ),
            geocoder_provider=os.getenv("GEOCODER_PROVIDER", cls.geocoder_provider).strip().lower(),
            ban_base_url=os.getenv("BAN_BASE_URL", cls.ban_base_url),
            nominatim_base_url=os.getenv("NOMINATIM_BASE_URL", cls.nominatim_base_url),
            geocoder_user_agent=os.getenv("GEOCODER_USER_AGENT", cls.geocoder_user_agent),
            geocoder_timeout_seconds=float(
                os.getenv("GEOCODER_TIMEOUT_SECONDS", str(cls.geocoder_timeout_seconds))
            ),
            location_interval_ms=int(
                os.getenv("LOCATION_INTERVAL_MS", str(cls.location_interval_ms))
            ),
            location_min_update_interval_ms=int(
                os.getenv("LOCATION_MIN_UPDATE_INTERVAL_MS", str(cls.location_min_update_interval_ms))
            ),
            location_max_update_delay_ms=int(
                os.getenv("LOCATION_MAX_UPDATE_DELAY_MS", str(cls.location_max_update_delay_ms))
            ),
            location_timeout_seconds=float(
                os.getenv("LOCATION_TIMEOUT_SECONDS", str(cls.location_timeout_seconds))
            ),
            geocode_timeout_seconds=float(
                os.getenv("GEOCODE_TIMEOUT_SECONDS", str(cls.geocode_timeout_seconds))
            ),
            strict_postal_codes=_env_bool("STRICT_POSTAL_CODES", cls.strict_postal_codes),
            display_messages_file=_resolve_path(
                os.getenv("DISPLAY_MESSAGES_FILE", str(cls.display_messages_file))
            ),
            permission_granted_by_default=_env_bool(
                "PERMISSION_GRANTED_BY_DEFAULT", cls.permission_granted_by_default
            ),
            session_idle_ttl_seconds=float(
                os.getenv("SESSION_IDLE_TTL_SECONDS", str(cls.session_idle_ttl_seconds))
            ),
        )
