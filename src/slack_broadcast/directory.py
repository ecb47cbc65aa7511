"""Read-only name lookup shared by the mention and channel resolvers.

A directory maps a name to whatever the caller needs to address it, or
``None`` when the name is unknown.  Implementations must be safe to call
from several delivery units at once; none of them mutate shared state
after construction except for idempotent caches.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Protocol, TypeVar

from slack_broadcast.domain.models import MentionEntry

T_co = TypeVar("T_co", covariant=True)


class Directory(Protocol[T_co]):
    """Name -> identifier lookup."""

    def resolve(self, name: str) -> T_co | None:
        """Return the entry for *name*, or ``None`` if it is not known."""
        ...


class MentionDirectory:
    """Mention names configured in the ``mentions:`` section of the YAML config."""

    def __init__(self, entries: Mapping[str, MentionEntry] | None = None) -> None:
        self._entries: dict[str, MentionEntry] = dict(entries or {})

    def resolve(self, name: str) -> MentionEntry | None:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
