"""Unit tests for resolution state transitions."""

from __future__ import annotations

import pytest

from arrondissement.resolver.classification.postal_code import (
    Arrondissement,
    NoCode,
    NotParisCode,
    UnparsablePostalCode,
)
from arrondissement.resolver.errors import InvalidTransitionError
from arrondissement.resolver.orchestration.transition_policy import ResolutionTransitions
from arrondissement.resolver.ports import Coordinates
from arrondissement.resolver.runtime.resolution_state import ResolutionState

PARIS = Coordinates(latitude=48.8566, longitude=2.3522)


def _geocoding_state(policy: ResolutionTransitions) -> ResolutionState:
    state = policy.start(policy.initial())
    state = policy.permission_granted(state)
    return policy.location_obtained(state, PARIS)


def test_start_then_grant_enters_locating() -> None:
    policy = ResolutionTransitions()

    state = policy.start(policy.initial())
    assert state.phase == "permission_check"
    assert state.display_value == "Waiting..."

    state = policy.permission_granted(state)
    assert state.phase == "locating"
    assert state.display_value == "Locating..."
    assert state.is_loading is True


def test_location_obtained_keeps_locating_text() -> None:
    policy = ResolutionTransitions()

    state = _geocoding_state(policy)

    assert state.phase == "geocoding"
    assert state.display_value == "Locating..."
    assert state.coordinates == PARIS
    assert state.is_loading is True


def test_arrondissement_result_is_resolved_with_label() -> None:
    policy = ResolutionTransitions()

    state = policy.geocoded(_geocoding_state(policy), Arrondissement(number=1, raw_code="75001"))

    assert state.phase == "resolved"
    assert state.display_value == "1"
    assert state.sub_text == "Arrondissement"
    assert state.error_kind is None
    assert state.is_loading is False


def test_not_paris_code_is_informational() -> None:
    policy = ResolutionTransitions()

    state = policy.geocoded(_geocoding_state(policy), NotParisCode(raw_code="69001"))

    assert state.phase == "resolved"
    assert state.display_value == "69001"
    assert state.sub_text == "Postal Code"
    assert state.error_kind is None
    assert state.message == "Not a Paris, FR postal code."


def test_missing_code_shows_placeholder_without_label() -> None:
    policy = ResolutionTransitions()

    state = policy.geocoded(_geocoding_state(policy), NoCode())

    assert state.display_value == "N/A"
    assert state.sub_text is None
    assert state.error_kind == "no_address_found"


def test_unparsable_code_flags_parse_error() -> None:
    policy = ResolutionTransitions()

    state = policy.geocoded(_geocoding_state(policy), UnparsablePostalCode(raw_code="7501A"))

    assert state.phase == "resolved"
    assert state.display_value == "7501A"
    assert state.sub_text == "Postal Code"
    assert state.error_kind == "parse_error"
    assert state.message == "Could not parse arrondissement from 7501A."


def test_permission_needed_then_prompt_denied() -> None:
    policy = ResolutionTransitions()
    state = policy.start(policy.initial())

    needed = policy.permission_needed(state)
    assert needed.phase == "permission_denied"
    assert needed.display_value == "Permission needed"
    assert needed.permission_requested is False

    denied = policy.permission_denied(needed)
    assert denied.display_value == "Permission denied"
    assert denied.message == "Location permission is required."
    assert denied.permission_requested is True


def test_security_failure_while_locating_is_a_permission_state() -> None:
    policy = ResolutionTransitions()
    state = policy.permission_granted(policy.start(policy.initial()))

    revoked = policy.location_failed(state, "permission_revoked")
    unavailable = policy.location_failed(state, "location_unavailable")

    assert revoked.phase == "permission_denied"
    assert revoked.display_value == "Permission lost"
    assert unavailable.phase == "failed"
    assert unavailable.display_value == "Location error"


def test_provider_security_refusal_uses_its_own_text() -> None:
    policy = ResolutionTransitions()
    state = policy.permission_granted(policy.start(policy.initial()))

    refused = policy.location_failed(state, "permission_revoked", security_error=True)

    assert refused.phase == "permission_denied"
    assert refused.error_kind == "permission_revoked"
    assert refused.display_value == "Permission error"
    assert refused.message == "Security error fetching location."


def test_retry_clears_result_and_sub_text() -> None:
    policy = ResolutionTransitions()
    resolved = policy.geocoded(_geocoding_state(policy), Arrondissement(number=5, raw_code="75005"))

    state = policy.retry(resolved)

    assert state.phase == "permission_check"
    assert state.display_value == "Locating..."
    assert state.sub_text is None
    assert state.postal_code is None


def test_geocoding_failure_is_terminal_but_retryable() -> None:
    policy = ResolutionTransitions()

    failed = policy.geocoding_failed(_geocoding_state(policy), "geocoding_unavailable")

    assert failed.phase == "failed"
    assert failed.display_value == "Network Error"
    assert failed.is_retryable is True
    assert policy.retry(failed).phase == "permission_check"


@pytest.mark.parametrize(
    "event",
    ["retry", "permission_granted", "restart"],
)
def test_idle_rejects_events_other_than_start(event: str) -> None:
    policy = ResolutionTransitions()

    with pytest.raises(InvalidTransitionError):
        getattr(policy, event)(policy.initial())


def test_geocode_result_outside_geocoding_is_rejected() -> None:
    policy = ResolutionTransitions()
    locating = policy.permission_granted(policy.start(policy.initial()))

    with pytest.raises(InvalidTransitionError):
        policy.geocoded(locating, Arrondissement(number=1, raw_code="75001"))
