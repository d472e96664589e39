"""Geocoding infra: blocking JSON GET over urllib shared by reverse geocoders."""

from __future__ import annotations

import json
from typing import Any
from urllib import error, parse, request

from arrondissement.resolver.errors import GeocodingUnavailableError


def build_url(base_url: str, path: str, params: dict[str, Any]) -> str:
    return base_url.rstrip("/") + path + "?" + parse.urlencode(params)


def get_json(url: str, *, headers: dict[str, str], timeout_seconds: float) -> Any:
    """GET ``url`` and decode JSON; transport or decoding failures raise GeocodingUnavailableError."""
    req = request.Request(url, headers=headers, method="GET")
    try:
        with request.urlopen(req, timeout=timeout_seconds) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except (error.URLError, error.HTTPError, TimeoutError) as exc:
        raise GeocodingUnavailableError(f"geocoder_request_failed:{exc}") from exc

    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise GeocodingUnavailableError("geocoder_invalid_json") from exc
