"""Validation and all-or-nothing resolution of named channel lists."""

from __future__ import annotations

from collections import Counter

import pydantic
import structlog

from slack_broadcast.directory import Directory
from slack_broadcast.domain.errors import ResolutionError, ValidationError
from slack_broadcast.domain.models import ChannelTarget, NamedChannelList, ResolvedChannel
from slack_broadcast.domain.types import MAX_CHANNELS_PER_LIST

logger = structlog.get_logger()


def parse_channel_target(raw: str) -> ChannelTarget:
    """Parse a single ``#name`` or channel-ID reference.

    Raises:
        ValidationError: If *raw* is not a well-formed channel reference.
    """
    try:
        return ChannelTarget(raw=raw)
    except pydantic.ValidationError as exc:
        reason = exc.errors()[0]["msg"] if exc.errors() else str(exc)
        raise ValidationError(f"Invalid channel {raw!r}: {reason}") from None


class ChannelListResolver:
    """Resolves channel targets to deliverable channels via a directory.

    Args:
        directory: Lookup from a raw channel reference (``#name`` or ID)
            to a :class:`ResolvedChannel`.
    """

    def __init__(self, directory: Directory[ResolvedChannel]) -> None:
        self._directory = directory

    def validate(self, channel_list: NamedChannelList) -> None:
        """Check list-level invariants without touching the directory.

        Raises:
            ValidationError: If the name is empty, the list has no targets or
                more than 100, or any raw identifier appears twice.
        """
        if not channel_list.name.strip():
            raise ValidationError("Channel list name cannot be empty")

        count = len(channel_list.channels)
        if count == 0:
            raise ValidationError(f"Channel list {channel_list.name!r} cannot be empty")
        if count > MAX_CHANNELS_PER_LIST:
            raise ValidationError(
                f"Channel list {channel_list.name!r} cannot contain more than "
                f"{MAX_CHANNELS_PER_LIST} channels (got {count})"
            )

        duplicates = sorted(
            raw for raw, n in Counter(t.raw for t in channel_list.channels).items() if n > 1
        )
        if duplicates:
            raise ValidationError(
                f"Duplicate channel {', '.join(duplicates)} in list {channel_list.name!r}"
            )

    def resolve(self, channel_list: NamedChannelList) -> tuple[ResolvedChannel, ...]:
        """Validate, then resolve every target of *channel_list*.

        Resolution is all-or-nothing: a single miss fails the whole list and
        leaves it unresolved.  A list that was already resolved is returned
        from its cached set without further lookups.

        Returns:
            Resolved channels in target order.

        Raises:
            ValidationError: From :meth:`validate`.
            ResolutionError: If any target is unknown to the directory.
        """
        cached = channel_list.resolved_channels
        if cached is not None:
            return cached

        self.validate(channel_list)

        resolved: list[ResolvedChannel] = []
        missing: list[str] = []
        for target in channel_list.channels:
            channel = self._directory.resolve(target.raw)
            if channel is None:
                missing.append(target.raw)
            else:
                resolved.append(channel)

        if missing:
            logger.warning(
                "channel_list_resolution_failed",
                list_name=channel_list.name,
                unresolved=missing,
            )
            raise ResolutionError(
                f"Could not resolve {len(missing)} channel(s) in list "
                f"{channel_list.name!r}: {', '.join(missing)}",
                unresolved=missing,
            )

        channel_list.set_resolved(resolved)
        logger.info(
            "channel_list_resolved",
            list_name=channel_list.name,
            channels=len(resolved),
        )
        return channel_list.resolved_channels or ()

    def resolve_channel(self, raw: str) -> tuple[ResolvedChannel, ...]:
        """Resolve one explicit channel into a one-element set.

        No list validation applies.

        Raises:
            ValidationError: If *raw* is not a well-formed channel reference.
            ResolutionError: If the directory does not know the channel.
        """
        target = parse_channel_target(raw)
        channel = self._directory.resolve(target.raw)
        if channel is None:
            raise ResolutionError(f"Unknown channel: {target.raw}", unresolved=[target.raw])
        return (channel,)
