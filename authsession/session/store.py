"""Single-cell holder for the current :class:`SessionState`."""

from __future__ import annotations

from typing import Callable

from loguru import logger

from ..models.session import SessionState

Observer = Callable[[SessionState], None]
Unsubscribe = Callable[[], None]


class SessionStore:
    """Holds one immutable :class:`SessionState` and notifies observers.

    ``set`` swaps the whole snapshot in a single assignment, so readers see
    either the old pair or the new one, never a mix.  Once resolved the
    state can never go back to ``UNRESOLVED``.
    """

    def __init__(self, initial: SessionState | None = None) -> None:
        self._state = initial or SessionState.unresolved()
        self._observers: list[Observer] = []

    def get(self) -> SessionState:
        return self._state

    def set(self, next_state: SessionState) -> None:
        if self._state.is_resolved and not next_state.is_resolved:
            raise ValueError("session state cannot return to unresolved")
        self._state = next_state
        # Copy: observers may unsubscribe while being notified.
        for observer in list(self._observers):
            try:
                observer(next_state)
            except Exception:
                logger.exception(f"Session observer {observer!r} raised")

    def subscribe(self, observer: Observer) -> Unsubscribe:
        """Register *observer*; the returned callable removes it again."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            try:
                self._observers.remove(observer)
            except ValueError:
                pass

        return unsubscribe
