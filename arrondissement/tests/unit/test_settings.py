"""Unit tests for environment-driven settings, including geocoder/location config."""

from __future__ import annotations

from pathlib import Path

from arrondissement.core.config import Settings


def test_settings_reads_geocoder_and_location_env(monkeypatch) -> None:
    monkeypatch.setenv("GEOCODER_PROVIDER", " Nominatim ")
    monkeypatch.setenv("NOMINATIM_BASE_URL", "https://osm.example.com")
    monkeypatch.setenv("BAN_BASE_URL", "https://ban.example.com")
    monkeypatch.setenv("GEOCODER_USER_AGENT", "watch-test/1.0 (ops@example.com)")
    monkeypatch.setenv("GEOCODER_TIMEOUT_SECONDS", "4")
    monkeypatch.setenv("LOCATION_INTERVAL_MS", "8000")
    monkeypatch.setenv("LOCATION_MIN_UPDATE_INTERVAL_MS", "2000")
    monkeypatch.setenv("LOCATION_MAX_UPDATE_DELAY_MS", "9000")
    monkeypatch.setenv("LOCATION_TIMEOUT_SECONDS", "0")
    monkeypatch.setenv("GEOCODE_TIMEOUT_SECONDS", "3.5")
    monkeypatch.setenv("STRICT_POSTAL_CODES", "yes")
    monkeypatch.setenv("PERMISSION_GRANTED_BY_DEFAULT", "true")
    monkeypatch.setenv("DISPLAY_MESSAGES_FILE", "custom/messages.yaml")
    monkeypatch.setenv("REPLAY_BUFFER_SIZE", "50")
    monkeypatch.setenv("SESSION_IDLE_TTL_SECONDS", "120")

    settings = Settings.from_env()

    assert settings.geocoder_provider == "nominatim"
    assert settings.nominatim_base_url == "https://osm.example.com"
    assert settings.ban_base_url == "https://ban.example.com"
    assert settings.geocoder_user_agent == "watch-test/1.0 (ops@example.com)"
    assert settings.geocoder_timeout_seconds == 4
    assert settings.location_interval_ms == 8000
    assert settings.location_min_update_interval_ms == 2000
    assert settings.location_max_update_delay_ms == 9000
    assert settings.location_timeout_seconds == 0
    assert settings.geocode_timeout_seconds == 3.5
    assert settings.strict_postal_codes is True
    assert settings.permission_granted_by_default is True
    assert settings.display_messages_file == Path("custom/messages.yaml")
    assert settings.session_idle_ttl_seconds == 120
    assert settings.replay_buffer_size == 50


def test_settings_defaults_without_env(monkeypatch) -> None:
    for name in ("GEOCODER_PROVIDER", "STRICT_POSTAL_CODES", "GEOCODE_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.geocoder_provider == "ban"
    assert settings.strict_postal_codes is False
    assert settings.geocode_timeout_seconds == 15.0
