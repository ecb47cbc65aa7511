"""Broadcast orchestration with per-channel retry and dry-run support."""

from slack_broadcast.delivery.orchestrator import BroadcastOrchestrator, Sender
from slack_broadcast.delivery.retry import delivery_retrying, wait_retry_after

__all__ = [
    "BroadcastOrchestrator",
    "Sender",
    "delivery_retrying",
    "wait_retry_after",
]
