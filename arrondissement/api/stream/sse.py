"""Stream API layer: SSE endpoint with replay support and heartbeat."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from arrondissement.api.deps import get_container
from arrondissement.core.container import AppContainer

router = APIRouter(tags=["stream"])


def _format_sse(*, event: str, data: dict, event_id: int) -> str:
    body = json.dumps(data, ensure_ascii=False)
    return f"id: {event_id}\nevent: {event}\ndata: {body}\n\n"


@router.get("/api/stream/{session_id}")
async def stream(
    session_id: str,
    last_event_id: int | None = Query(default=None),
    last_event_id_header: str | None = Header(default=None, alias="Last-Event-ID"),
    container: AppContainer = Depends(get_container),
) -> StreamingResponse:
    if container.sessions.get(session_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="session_not_found")

    async def iterator() -> AsyncIterator[str]:
        cursor = last_event_id
        if cursor is None and isinstance(last_event_id_header, str):
            try:
                cursor = int(last_event_id_header)
            except ValueError:
                cursor = None
        waited = 0
        while waited < container.settings.sse_max_wait_seconds:
            events = container.replay_buffer.list_events(session_id, cursor)
            if events:
                for evt in events:
                    cursor = evt.id
                    yield _format_sse(
                        event=evt.event,
                        data=evt.model_dump(mode="json"),
                        event_id=evt.id,
                    )
                    if evt.event == "session.stopped":
                        return
            else:
                yield ": keep-alive\n\n"
            waited += 1
            await asyncio.sleep(container.settings.sse_keepalive_seconds)

    return StreamingResponse(iterator(), media_type="text/event-stream")
