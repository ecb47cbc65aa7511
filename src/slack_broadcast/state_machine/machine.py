"""BroadcastStateMachine class with advance, history, and valid_events."""

from __future__ import annotations

from dataclasses import dataclass

from slack_broadcast.domain.errors import InvalidTransitionError
from slack_broadcast.domain.types import BroadcastState
from slack_broadcast.state_machine.transitions import TERMINAL_STATES, TRANSITIONS


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of applying one event.

    Exactly one of ``state`` (on success) and ``error`` (on rejection) is set.
    """

    state: BroadcastState | None = None
    error: InvalidTransitionError | None = None

    @property
    def ok(self) -> bool:
        """True when the transition was applied."""
        return self.error is None


class BroadcastStateMachine:
    """Finite state machine governing one broadcast's lifecycle.

    Rejected events leave the state unchanged and come back as a failed
    :class:`TransitionResult`; nothing is raised.

    Usage::

        sm = BroadcastStateMachine()
        sm.advance("start")      # -> RESOLVING
        sm.advance("resolved")   # -> DELIVERING
        sm.advance("finish")     # -> COMPLETED (terminal)
    """

    def __init__(self, initial_state: BroadcastState = BroadcastState.PENDING) -> None:
        self._state: BroadcastState = initial_state
        self._history: list[tuple[BroadcastState, str, BroadcastState]] = []

    @property
    def state(self) -> BroadcastState:
        """Return the current broadcast state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Return True if the machine is in a terminal state (COMPLETED or FAILED)."""
        return self._state in TERMINAL_STATES

    @property
    def history(self) -> list[tuple[BroadcastState, str, BroadcastState]]:
        """Return a copy of the ``(from_state, event, to_state)`` history."""
        return list(self._history)

    def advance(self, event: str) -> TransitionResult:
        """Apply an event to the current state.

        Args:
            event: The event string (e.g. ``"start"``).

        Returns:
            A successful result carrying the new state, or a failed result
            carrying an :class:`InvalidTransitionError` when the event is not
            allowed from the current state.
        """
        key = (self._state, event)
        if self.is_terminal or key not in TRANSITIONS:
            return TransitionResult(error=InvalidTransitionError(self._state, event))

        old_state = self._state
        new_state = TRANSITIONS[key]
        self._history.append((old_state, event, new_state))
        self._state = new_state
        return TransitionResult(state=new_state)

    def get_valid_events(self) -> list[str]:
        """Return a sorted list of events valid from the current state."""
        if self.is_terminal:
            return []
        return sorted(event for state, event in TRANSITIONS if state == self._state)
