"""HTTP API layer: health and readiness endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from arrondissement.api.deps import get_container
from arrondissement.core.container import AppContainer

router = APIRouter(tags=["health"])


@router.get("/health")
def health(container: AppContainer = Depends(get_container)) -> dict:
    return {
        "status": "ok",
        "geocoder": container.settings.geocoder_provider,
        "sessions": len(container.sessions.list_ids()),
        "env": container.settings.env,
    }
