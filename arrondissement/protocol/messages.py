"""Protocol layer: request/response DTOs for the presentation API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from arrondissement.resolver.display.display_messages import ErrorKind
from arrondissement.resolver.runtime.resolution_state import ResolutionPhase, ResolutionState


class Location(BaseModel):
    """Device-side location fix."""

    lng: float = Field(..., ge=-180.0, le=180.0, description="Longitude in WGS84.")
    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in WGS84.")


class PermissionResultRequest(BaseModel):
    granted: bool


class ResolutionStateDto(BaseModel):
    """What a watch face renders: primary text, label, spinner and retry affordance."""

    session_id: str
    phase: ResolutionPhase
    display_value: str
    sub_text: str | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None
    is_loading: bool
    show_retry: bool
    needs_permission_prompt: bool
    postal_code: str | None = None
    location: Location | None = None
    closed: bool = False

    @classmethod
    def from_state(cls, session_id: str, state: ResolutionState, *, closed: bool = False) -> "ResolutionStateDto":
        location = None
        if state.coordinates is not None:
            location = Location(lng=state.coordinates.longitude, lat=state.coordinates.latitude)
        return cls(
            session_id=session_id,
            phase=state.phase,
            display_value=state.display_value,
            sub_text=state.sub_text,
            error_kind=state.error_kind,
            message=state.message,
            is_loading=state.is_loading,
            show_retry=state.error_kind is not None,
            needs_permission_prompt=state.phase == "permission_denied" and not state.permission_requested,
            postal_code=state.postal_code,
            location=location,
            closed=closed,
        )


class LocationFixResponse(BaseModel):
    session_id: str
    delivered: int
    state: ResolutionStateDto
