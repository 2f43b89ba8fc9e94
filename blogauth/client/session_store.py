"""Observable holder of the client's current session state."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from blogauth.schemas.auth import SessionData

Listener = Callable[["SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    """Snapshot handed to subscribers.

    ``is_pending`` is true until the first session read completes.
    """

    data: SessionData | None = None
    is_pending: bool = True


class SessionStore:
    """Session state with explicit subscribe/unsubscribe.

    Listeners are called synchronously, in subscription order, on every
    state change.
    """

    def __init__(self) -> None:
        self._state = SessionState()
        self._listeners: list[Listener] = []
        self._closed = False

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        if self._closed:
            raise RuntimeError("SessionStore is closed")
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def _publish(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def set_pending(self) -> None:
        self._publish(SessionState(data=self._state.data, is_pending=True))

    def set_session(self, data: SessionData | None) -> None:
        self._publish(SessionState(data=data, is_pending=False))

    def clear(self) -> None:
        self.set_session(None)

    def close(self) -> None:
        """Deregister every subscriber; later subscriptions are refused."""
        self._listeners.clear()
        self._closed = True
