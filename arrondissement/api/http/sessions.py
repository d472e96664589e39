"""HTTP API layer: location session lifecycle for watch/presentation clients."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from arrondissement.api.deps import get_container
from arrondissement.core.container import AppContainer
from arrondissement.infra.observability.logger import get_logger
from arrondissement.protocol.messages import (
    Location,
    LocationFixResponse,
    PermissionResultRequest,
    ResolutionStateDto,
)
from arrondissement.resolver.errors import InvalidTransitionError, SessionClosedError
from arrondissement.resolver.ports import Coordinates
from arrondissement.resolver.runtime.session_registry import SessionHandle

router = APIRouter(prefix="/api/sessions", tags=["sessions"])
logger = get_logger(__name__)


def _handle_or_404(container: AppContainer, session_id: str) -> SessionHandle:
    handle = container.sessions.get(session_id)
    if handle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="session_not_found")
    return handle


def _to_dto(handle: SessionHandle) -> ResolutionStateDto:
    session = handle.session
    return ResolutionStateDto.from_state(session.session_id, session.state, closed=session.closed)


def _conflict(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post("", response_model=ResolutionStateDto, status_code=status.HTTP_201_CREATED)
async def create_session(container: AppContainer = Depends(get_container)) -> ResolutionStateDto:
    handle = container.sessions.create()
    logger.info("api.sessions.create session_id=%s", handle.session.session_id)
    handle.session.start()
    return _to_dto(handle)


@router.get("/{session_id}", response_model=ResolutionStateDto)
async def get_session(
    session_id: str,
    container: AppContainer = Depends(get_container),
) -> ResolutionStateDto:
    return _to_dto(_handle_or_404(container, session_id))


@router.post("/{session_id}/start", response_model=ResolutionStateDto)
async def start_session(
    session_id: str,
    container: AppContainer = Depends(get_container),
) -> ResolutionStateDto:
    handle = _handle_or_404(container, session_id)
    try:
        handle.session.start()
    except (InvalidTransitionError, SessionClosedError) as exc:
        raise _conflict(exc) from exc
    return _to_dto(handle)


@router.post("/{session_id}/permission", response_model=ResolutionStateDto)
async def permission_result(
    session_id: str,
    request: PermissionResultRequest,
    container: AppContainer = Depends(get_container),
) -> ResolutionStateDto:
    handle = _handle_or_404(container, session_id)
    logger.info("api.sessions.permission session_id=%s granted=%s", session_id, request.granted)
    handle.permission_gate.resolve(request.granted)
    try:
        handle.session.on_permission_result(request.granted)
    except (InvalidTransitionError, SessionClosedError) as exc:
        raise _conflict(exc) from exc
    return _to_dto(handle)


@router.post("/{session_id}/retry", response_model=ResolutionStateDto)
async def retry_session(
    session_id: str,
    container: AppContainer = Depends(get_container),
) -> ResolutionStateDto:
    handle = _handle_or_404(container, session_id)
    try:
        handle.session.retry()
    except (InvalidTransitionError, SessionClosedError) as exc:
        raise _conflict(exc) from exc
    return _to_dto(handle)


@router.post("/{session_id}/location", response_model=LocationFixResponse)
async def push_location(
    session_id: str,
    location: Location,
    container: AppContainer = Depends(get_container),
) -> LocationFixResponse:
    handle = _handle_or_404(container, session_id)
    if handle.session.closed:
        raise _conflict(SessionClosedError(f"session_closed:{session_id}"))
    delivered = handle.location_provider.push_fix(Coordinates(latitude=location.lat, longitude=location.lng))
    logger.info(
        "api.sessions.location session_id=%s lat=%s lng=%s delivered=%s",
        session_id,
        location.lat,
        location.lng,
        delivered,
    )
    return LocationFixResponse(session_id=session_id, delivered=delivered, state=_to_dto(handle))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    container: AppContainer = Depends(get_container),
) -> Response:
    if not container.sessions.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="session_not_found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
