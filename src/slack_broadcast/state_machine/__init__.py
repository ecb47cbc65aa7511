"""Broadcast lifecycle state machine with transition validation."""

from slack_broadcast.state_machine.machine import BroadcastStateMachine, TransitionResult
from slack_broadcast.state_machine.transitions import (
    TERMINAL_STATES,
    TRANSITIONS,
    BroadcastEvent,
)

__all__ = [
    "BroadcastEvent",
    "BroadcastStateMachine",
    "TERMINAL_STATES",
    "TRANSITIONS",
    "TransitionResult",
]
