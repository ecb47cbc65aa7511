"""Channel directory backed by the Slack conversations API."""

from __future__ import annotations

import threading
from typing import Any, NoReturn

import structlog
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from slack_broadcast.domain.errors import AuthenticationError, ResolutionError
from slack_broadcast.domain.models import ResolvedChannel
from slack_broadcast.slack.client import AUTH_ERROR_CODES, TRANSPORT_ERRORS

logger = structlog.get_logger()

NOT_FOUND_ERROR_CODES: frozenset[str] = frozenset({"channel_not_found", "not_found"})

_PAGE_SIZE = 200


def _to_resolved(channel: dict[str, Any]) -> ResolvedChannel:
    return ResolvedChannel(
        id=str(channel["id"]),
        name=str(channel.get("name", "")),
        is_private=bool(channel.get("is_private", False)),
        is_member=bool(channel.get("is_member", False)),
    )


def _raise_unreachable(exc: Exception, reference: str) -> NoReturn:
    raise ResolutionError(
        f"Could not reach Slack while resolving {reference}: {type(exc).__name__}: {exc}",
        unresolved=[reference],
    ) from exc


class SlackChannelDirectory:
    """Resolves ``#name`` and channel-ID references to Slack channels.

    Names are looked up in a name -> channel index built from one paginated
    ``conversations.list`` sweep on first use (archived channels excluded).
    IDs are checked with ``conversations.info``.  The index is built under a
    lock and never mutated afterwards, so concurrent callers are safe.

    Args:
        client: A configured :class:`slack_sdk.WebClient`.
    """

    def __init__(self, client: WebClient) -> None:
        self._client = client
        self._by_name: dict[str, ResolvedChannel] | None = None
        self._lock = threading.Lock()

    def resolve(self, name: str) -> ResolvedChannel | None:
        """Return the channel for a ``#name`` or ID reference, or ``None``.

        Raises:
            AuthenticationError: If Slack rejects the token.
            ResolutionError: On any other Slack API failure, or when Slack
                cannot be reached.
        """
        if name.startswith("#"):
            return self._channels_by_name().get(name[1:])
        return self._channel_by_id(name)

    def _raise_for(self, exc: SlackApiError, reference: str) -> NoReturn:
        code = str(exc.response.get("error", "unknown_error")) if exc.response else "unknown_error"
        if code in AUTH_ERROR_CODES:
            raise AuthenticationError(f"Slack rejected the token: {code}") from exc
        raise ResolutionError(
            f"Slack error while resolving {reference}: {code}", unresolved=[reference]
        ) from exc

    def _channel_by_id(self, channel_id: str) -> ResolvedChannel | None:
        try:
            response = self._client.conversations_info(channel=channel_id)
        except SlackApiError as exc:
            code = exc.response.get("error") if exc.response else None
            if code in NOT_FOUND_ERROR_CODES:
                return None
            self._raise_for(exc, channel_id)
        except TRANSPORT_ERRORS as exc:
            _raise_unreachable(exc, channel_id)
        channel = response.get("channel")
        if not channel or channel.get("is_archived"):
            return None
        return _to_resolved(channel)

    def _channels_by_name(self) -> dict[str, ResolvedChannel]:
        with self._lock:
            if self._by_name is None:
                self._by_name = self._load_index()
            return self._by_name

    def _load_index(self) -> dict[str, ResolvedChannel]:
        index: dict[str, ResolvedChannel] = {}
        cursor: str | None = None
        while True:
            try:
                response = self._client.conversations_list(
                    types="public_channel,private_channel",
                    exclude_archived=True,
                    limit=_PAGE_SIZE,
                    cursor=cursor,
                )
            except SlackApiError as exc:
                self._raise_for(exc, "channel list")
            except TRANSPORT_ERRORS as exc:
                _raise_unreachable(exc, "channel list")
            for channel in response.get("channels", []):
                resolved = _to_resolved(channel)
                index[resolved.name] = resolved
            cursor = (response.get("response_metadata") or {}).get("next_cursor") or None
            if not cursor:
                break
        logger.debug("slack_channel_index_loaded", channels=len(index))
        return index
