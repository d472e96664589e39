"""Typed failures raised by location/geocoding collaborators and the session runtime."""

from __future__ import annotations


class LocationPermissionError(RuntimeError):
    """Raised when location access is refused or revoked while a fix is requested."""


class LocationUnavailableError(RuntimeError):
    """Raised when the location provider cannot deliver a fix."""


class GeocodingUnavailableError(RuntimeError):
    """Raised on network or service failure during reverse geocoding."""


class NoAddressFoundError(RuntimeError):
    """Raised when reverse geocoding succeeded but returned zero results."""


class InvalidTransitionError(RuntimeError):
    """Raised when an event is not accepted in the current resolution phase."""


class SessionClosedError(RuntimeError):
    """Raised when a stopped session is asked to resolve again."""


class PermissionLostError(LocationPermissionError):
    """Raised when permission disappears before the live location request is issued."""


class InvalidCoordinatesError(RuntimeError):
    """Raised when coordinates are outside WGS84 ranges before geocoding."""
