"""Transition map defining all valid (state, event) -> state mappings."""

from enum import StrEnum

from slack_broadcast.domain.types import BroadcastState


class BroadcastEvent(StrEnum):
    """Events that can trigger state transitions in a broadcast."""

    START = "start"
    RESOLVED = "resolved"
    FAIL = "fail"
    FINISH = "finish"


# All valid (current_state, event_string) -> next_state mappings.
# Any pair not in this dict is an invalid transition.
TRANSITIONS: dict[tuple[BroadcastState, str], BroadcastState] = {
    (BroadcastState.PENDING, BroadcastEvent.START): BroadcastState.RESOLVING,
    (BroadcastState.RESOLVING, BroadcastEvent.RESOLVED): BroadcastState.DELIVERING,
    (BroadcastState.RESOLVING, BroadcastEvent.FAIL): BroadcastState.FAILED,
    (BroadcastState.DELIVERING, BroadcastEvent.FINISH): BroadcastState.COMPLETED,
}

# States that reject all events -- no outgoing transitions allowed.
TERMINAL_STATES: frozenset[BroadcastState] = frozenset(
    {BroadcastState.COMPLETED, BroadcastState.FAILED}
)
