"""State transition policy for a single location-to-arrondissement resolution."""

from __future__ import annotations

from dataclasses import replace

from arrondissement.resolver.classification.postal_code import (
    Arrondissement,
    ClassificationResult,
    NoCode,
    NotParisCode,
    UnparsablePostalCode,
)
from arrondissement.resolver.display.display_messages import DisplayMessages, ErrorKind
from arrondissement.resolver.errors import InvalidTransitionError
from arrondissement.resolver.ports import Coordinates
from arrondissement.resolver.runtime.resolution_state import (
    RETRYABLE_PHASES,
    ResolutionPhase,
    ResolutionState,
)

_PERMISSION_KINDS = {"permission_denied", "permission_revoked"}


class ResolutionTransitions:
    """Compute the next state snapshot for each session event."""

    def __init__(self, messages: DisplayMessages | None = None) -> None:
        self._messages = messages or DisplayMessages()

    def initial(self) -> ResolutionState:
        return ResolutionState(display_value=self._messages.waiting)

    def start(self, state: ResolutionState) -> ResolutionState:
        self._require(state, "start", {"idle"})
        return self._enter(state, "permission_check", self._messages.waiting)

    def restart(self, state: ResolutionState) -> ResolutionState:
        if state.phase == "idle":
            raise InvalidTransitionError("invalid_transition:idle:restart")
        return self._enter(state, "permission_check", self._messages.locating)

    def retry(self, state: ResolutionState) -> ResolutionState:
        self._require(state, "retry", RETRYABLE_PHASES)
        return self._enter(state, "permission_check", self._messages.locating)

    def permission_granted(self, state: ResolutionState, *, from_prompt: bool = False) -> ResolutionState:
        self._require(state, "permission_granted", {"permission_check", "permission_denied"})
        next_state = self._enter(state, "locating", self._messages.locating)
        if from_prompt:
            next_state = replace(next_state, permission_requested=True)
        return next_state

    def permission_needed(self, state: ResolutionState) -> ResolutionState:
        """The gate reports no permission; the presentation layer is expected to prompt."""
        self._require(state, "permission_needed", {"permission_check", "permission_denied"})
        return replace(
            self._enter(state, "permission_denied", self._messages.permission_needed),
            error_kind="permission_denied",
            message=self._messages.permission_needed_message,
        )

    def permission_denied(self, state: ResolutionState) -> ResolutionState:
        """The user declined the permission prompt."""
        self._require(state, "permission_denied", {"permission_check", "permission_denied"})
        text = self._messages.error("permission_denied")
        return replace(
            self._enter(state, "permission_denied", text.display),
            error_kind="permission_denied",
            message=text.message,
            permission_requested=True,
        )

    def location_obtained(self, state: ResolutionState, coordinates: Coordinates) -> ResolutionState:
        self._require(state, "location_obtained", {"locating"})
        return replace(state, phase="geocoding", coordinates=coordinates)

    def location_failed(
        self, state: ResolutionState, kind: ErrorKind, *, security_error: bool = False
    ) -> ResolutionState:
        """``security_error`` marks a provider refusal while permission still looked granted."""
        self._require(state, "location_failed", {"locating"})
        phase: ResolutionPhase = "permission_denied" if kind in _PERMISSION_KINDS else "failed"
        next_state = self._fail(state, phase, kind)
        if security_error:
            text = self._messages.security_error()
            next_state = replace(next_state, display_value=text.display, message=text.message)
        return next_state

    def geocoding_failed(self, state: ResolutionState, kind: ErrorKind) -> ResolutionState:
        self._require(state, "geocoding_failed", {"geocoding"})
        return self._fail(state, "failed", kind)

    def geocoded(self, state: ResolutionState, result: ClassificationResult) -> ResolutionState:
        self._require(state, "geocoded", {"geocoding"})
        messages = self._messages
        if isinstance(result, Arrondissement):
            return replace(
                state,
                phase="resolved",
                display_value=str(result.number),
                sub_text=messages.arrondissement_label,
                postal_code=result.raw_code,
            )
        if isinstance(result, UnparsablePostalCode):
            return replace(
                state,
                phase="resolved",
                display_value=result.raw_code,
                sub_text=messages.postal_code_label,
                error_kind="parse_error",
                message=messages.parse_error_message(result.raw_code),
                postal_code=result.raw_code,
            )
        if isinstance(result, NotParisCode):
            return replace(
                state,
                phase="resolved",
                display_value=result.raw_code,
                sub_text=messages.postal_code_label,
                message=messages.not_paris_message,
                postal_code=result.raw_code,
            )
        if isinstance(result, NoCode):
            return replace(
                state,
                phase="resolved",
                display_value=messages.no_code,
                error_kind="no_address_found",
                message=messages.no_code_message,
            )
        raise InvalidTransitionError(f"unknown_classification:{type(result).__name__}")

    def _enter(self, state: ResolutionState, phase: ResolutionPhase, display_value: str) -> ResolutionState:
        # Clears result fields so sub_text only survives in the resolved phase.
        return replace(
            state,
            phase=phase,
            display_value=display_value,
            sub_text=None,
            error_kind=None,
            message=None,
            coordinates=None,
            postal_code=None,
        )

    def _fail(self, state: ResolutionState, phase: ResolutionPhase, kind: ErrorKind) -> ResolutionState:
        text = self._messages.error(kind)
        return replace(
            self._enter(state, phase, text.display),
            error_kind=kind,
            message=text.message,
            coordinates=state.coordinates,
        )

    def _require(self, state: ResolutionState, event: str, allowed: set[str] | frozenset[str]) -> None:
        if state.phase not in allowed:
            raise InvalidTransitionError(f"invalid_transition:{state.phase}:{event}")
