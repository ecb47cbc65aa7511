"""Test doubles for the Slack directory and send primitive."""

from __future__ import annotations

import threading

from slack_broadcast.domain.models import ResolvedChannel


class FakeChannelDirectory:
    """In-memory channel directory that records every lookup."""

    def __init__(self, channels: dict[str, ResolvedChannel]) -> None:
        self._channels = channels
        self.lookups: list[str] = []

    def resolve(self, name: str) -> ResolvedChannel | None:
        self.lookups.append(name)
        return self._channels.get(name)


class FakeSender:
    """Thread-safe sender whose per-channel behaviour is scripted.

    ``script`` maps a channel ID to a list of exceptions (or ``None`` for
    success) consumed one per attempt; once exhausted, sends succeed.
    """

    def __init__(self, script: dict[str, list[Exception | None]] | None = None) -> None:
        self._script = {k: list(v) for k, v in (script or {}).items()}
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str]] = []

    def send(self, channel_id: str, content: str) -> str:
        with self._lock:
            self.calls.append((channel_id, content))
            steps = self._script.get(channel_id, [])
            step = steps.pop(0) if steps else None
            count = len(self.calls)
        if step is not None:
            raise step
        return f"1700000000.{count:06d}"

    def calls_for(self, channel_id: str) -> int:
        return sum(1 for cid, _ in self.calls if cid == channel_id)


def make_channel(index: int, name: str | None = None) -> ResolvedChannel:
    """A resolved channel with a deterministic ID."""
    return ResolvedChannel(id=f"C{index:010d}", name=name or f"chan{index}")

