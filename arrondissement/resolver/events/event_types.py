"""Event layer: typed diagnostic events emitted by location sessions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field


EventName = Literal[
    "session.started",
    "phase.changed",
    "location.obtained",
    "geocode.completed",
    "session.failed",
    "session.stopped",
]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StreamEvent(BaseModel):
    """Single session event kept in memory for SSE replay."""

    id: int
    session_id: str
    event: EventName
    at: str = Field(default_factory=utc_now_iso)
    data: dict[str, Any] = Field(default_factory=dict)
