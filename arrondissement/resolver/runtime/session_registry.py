"""In-memory registry of location sessions, one per presentation screen."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from uuid import uuid4

from arrondissement.infra.device.location_provider import DeviceLocationProvider
from arrondissement.infra.device.permission_gate import DevicePermissionGate
from arrondissement.infra.observability.logger import get_logger
from arrondissement.resolver.events.replay_buffer import ReplayBuffer
from arrondissement.resolver.runtime.location_session import LocationSession

SessionFactory = Callable[[str, DevicePermissionGate, DeviceLocationProvider], LocationSession]

logger = get_logger(__name__)


@dataclass
class SessionHandle:
    """A session together with the device collaborators the API feeds."""

    session: LocationSession
    permission_gate: DevicePermissionGate
    location_provider: DeviceLocationProvider


class SessionRegistry:
    """Thread-safe session store keyed by session_id.

    Sessions not touched through ``create``/``get`` for ``idle_ttl_seconds`` are
    stopped and dropped on the next access; ``0`` keeps them until deleted.
    """

    def __init__(
        self,
        *,
        factory: SessionFactory,
        replay_buffer: ReplayBuffer | None = None,
        permission_granted_by_default: bool = False,
        idle_ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self._replay_buffer = replay_buffer
        self._permission_granted_by_default = permission_granted_by_default
        self._idle_ttl_seconds = idle_ttl_seconds
        self._clock = clock
        self._lock = Lock()
        self._handles: dict[str, SessionHandle] = {}
        self._last_seen: dict[str, float] = {}

    def create(self, session_id: str | None = None) -> SessionHandle:
        sid = session_id or uuid4().hex
        with self._lock:
            now = self._clock()
            expired = self._pop_expired_locked(now)
            handle = self._handles.get(sid)
            if handle is None:
                gate = DevicePermissionGate(granted=self._permission_granted_by_default)
                provider = DeviceLocationProvider()
                handle = SessionHandle(
                    session=self._factory(sid, gate, provider),
                    permission_gate=gate,
                    location_provider=provider,
                )
                self._handles[sid] = handle
            self._last_seen[sid] = now
        self._close(expired)
        return handle

    def get(self, session_id: str) -> SessionHandle | None:
        with self._lock:
            now = self._clock()
            expired = self._pop_expired_locked(now)
            handle = self._handles.get(session_id)
            if handle is not None:
                self._last_seen[session_id] = now
        self._close(expired)
        return handle

    def list_ids(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def delete(self, session_id: str) -> bool:
        """Stop and forget one session; return True when it existed."""
        with self._lock:
            handle = self._handles.pop(session_id, None)
            self._last_seen.pop(session_id, None)
        if handle is None:
            return False
        self._close([(session_id, handle)])
        return True

    def stop_all(self) -> int:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
            self._last_seen.clear()
        for handle in handles:
            handle.session.stop()
        return len(handles)

    def _pop_expired_locked(self, now: float) -> list[tuple[str, SessionHandle]]:
        if self._idle_ttl_seconds <= 0:
            return []
        expired: list[tuple[str, SessionHandle]] = []
        for sid, seen in list(self._last_seen.items()):
            if now - seen >= self._idle_ttl_seconds:
                del self._last_seen[sid]
                expired.append((sid, self._handles.pop(sid)))
                logger.info("session_registry.evicted session_id=%s idle_seconds=%.1f", sid, now - seen)
        return expired

    def _close(self, handles: list[tuple[str, SessionHandle]]) -> None:
        for sid, handle in handles:
            handle.session.stop()
            if self._replay_buffer is not None:
                self._replay_buffer.discard(sid)
