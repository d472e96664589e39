"""User-facing texts for resolution states, overridable from a YAML catalogue."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Literal

import yaml

ErrorKind = Literal[
    "permission_denied",
    "permission_revoked",
    "location_unavailable",
    "geocoding_unavailable",
    "no_address_found",
    "parse_error",
    "invalid_coordinates",
]


@dataclass(frozen=True)
class ErrorText:
    display: str
    message: str


def _default_errors() -> dict[str, ErrorText]:
    return {
        "permission_denied": ErrorText("Permission denied", "Location permission is required."),
        "permission_revoked": ErrorText("Permission lost", "Permission was lost before update request."),
        "location_unavailable": ErrorText("Location error", "Could not retrieve location."),
        "geocoding_unavailable": ErrorText(
            "Network Error", "Geocoder service unavailable. Check internet connection."
        ),
        "no_address_found": ErrorText("Not found", "No address found for the current location."),
        "parse_error": ErrorText("Parse error", "Could not parse arrondissement from {code}."),
        "invalid_coordinates": ErrorText("Invalid Coords", "Invalid location coordinates for geocoding."),
        "permission_security_error": ErrorText("Permission error", "Security error fetching location."),
    }


def _is_code_template(message: str) -> bool:
    """Only {code} may appear as a placeholder in the parse error message."""
    try:
        message.format(code="")
    except (KeyError, IndexError, ValueError):
        return False
    return True


@dataclass(frozen=True)
class DisplayMessages:
    waiting: str = "Waiting..."
    locating: str = "Locating..."
    permission_needed: str = "Permission needed"
    permission_needed_message: str = "Grant permission to find location."
    arrondissement_label: str = "Arrondissement"
    postal_code_label: str = "Postal Code"
    no_code: str = "N/A"
    no_code_message: str = "No postal code found."
    not_paris_message: str = "Not a Paris, FR postal code."
    errors: dict[str, ErrorText] = field(default_factory=_default_errors)

    def error(self, kind: ErrorKind) -> ErrorText:
        return self.errors.get(kind) or _default_errors()[kind]

    def security_error(self) -> ErrorText:
        """Text for a location call refused by the platform while permission looked granted."""
        fallback = _default_errors()["permission_security_error"]
        return self.errors.get("permission_security_error") or fallback

    def parse_error_message(self, code: str) -> str:
        return self.error("parse_error").message.replace("{code}", code)

    @classmethod
    def from_yaml(cls, path: Path) -> "DisplayMessages":
        """Load overrides from YAML; missing or malformed files keep the defaults."""
        defaults = cls()
        if not path.exists():
            return defaults
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError:
            return defaults
        if not isinstance(raw, dict):
            return defaults

        overrides: dict[str, Any] = {}
        text_fields = {item.name for item in fields(cls) if item.name != "errors"}
        for name, value in raw.items():
            if name in text_fields and isinstance(value, str):
                overrides[name] = value

        errors = dict(defaults.errors)
        raw_errors = raw.get("errors")
        if isinstance(raw_errors, dict):
            for kind, payload in raw_errors.items():
                if kind not in errors or not isinstance(payload, dict):
                    continue
                base = errors[kind]
                display = payload.get("display")
                message = payload.get("message")
                if kind == "parse_error" and isinstance(message, str) and not _is_code_template(message):
                    message = None
                errors[kind] = ErrorText(
                    display=display if isinstance(display, str) else base.display,
                    message=message if isinstance(message, str) else base.message,
                )
        return replace(defaults, errors=errors, **overrides)
