"""Resolution state snapshot and its single-writer observable container."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Literal

from arrondissement.resolver.display.display_messages import ErrorKind
from arrondissement.resolver.ports import Coordinates

ResolutionPhase = Literal[
    "idle",
    "permission_check",
    "permission_denied",
    "locating",
    "geocoding",
    "resolved",
    "failed",
]

LOADING_PHASES: frozenset[str] = frozenset({"locating", "geocoding"})
RETRYABLE_PHASES: frozenset[str] = frozenset({"resolved", "failed", "permission_denied"})


@dataclass(frozen=True)
class ResolutionState:
    """What the presentation layer renders for one resolution attempt."""

    phase: ResolutionPhase = "idle"
    display_value: str = "Waiting..."
    sub_text: str | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None
    permission_requested: bool = False
    coordinates: Coordinates | None = None
    postal_code: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.phase in LOADING_PHASES

    @property
    def is_retryable(self) -> bool:
        return self.phase in RETRYABLE_PHASES


StateListener = Callable[[ResolutionState], None]


class ObservableState:
    """Holds the current snapshot; only the owning session publishes."""

    def __init__(self, initial: ResolutionState | None = None) -> None:
        self._lock = Lock()
        self._value = initial or ResolutionState()
        self._listeners: list[StateListener] = []

    @property
    def value(self) -> ResolutionState:
        return self._value

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener, call it with the current value, return an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)
        listener(self._value)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, state: ResolutionState) -> None:
        with self._lock:
            self._value = state
            listeners = list(self._listeners)
        for listener in listeners:
            listener(state)
