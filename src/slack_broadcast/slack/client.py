"""Slack delivery client for posting broadcast messages.

Wraps slack_sdk.WebClient to provide a single ``send`` primitive that maps
Slack API and transport failures onto the retryable / permanent delivery
error split used by the orchestrator.
"""

from __future__ import annotations

import urllib.error
from typing import Any

import structlog
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from slack_broadcast.config import Settings
from slack_broadcast.domain.errors import (
    AuthenticationError,
    DeliveryError,
    PermanentDeliveryError,
    RetryableDeliveryError,
)
from slack_broadcast.domain.models import SenderIdentity

logger = structlog.get_logger()

# Slack error codes worth another attempt.  Anything else returned by the
# API is treated as permanent.
RETRYABLE_ERROR_CODES: frozenset[str] = frozenset(
    {
        "ratelimited",
        "rate_limited",
        "service_unavailable",
        "internal_error",
        "fatal_error",
        "request_timeout",
        "timeout",
    }
)

AUTH_ERROR_CODES: frozenset[str] = frozenset(
    {
        "invalid_auth",
        "not_authed",
        "account_inactive",
        "token_revoked",
        "token_expired",
        "no_permission",
        "missing_scope",
    }
)

# Network failures raised by the HTTP layer underneath the SDK.
TRANSPORT_ERRORS: tuple[type[Exception], ...] = (
    urllib.error.URLError,
    ConnectionError,
    TimeoutError,
)


def create_web_client(settings: Settings) -> WebClient:
    """Build a WebClient from settings.

    The SDK's own retry handlers are disabled so every attempt is counted by
    the orchestrator's retry loop.
    """
    return WebClient(
        token=settings.slack_bot_token.get_secret_value(),
        timeout=max(1, int(settings.slack_timeout)),
        retry_handlers=[],
    )


def _retry_after(response: Any) -> float | None:
    headers = getattr(response, "headers", None) or {}
    value = headers.get("Retry-After") or headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def classify_slack_error(channel_id: str, exc: SlackApiError) -> DeliveryError:
    """Map a SlackApiError onto a retryable or permanent delivery error.

    Args:
        channel_id: The channel the failed call targeted.
        exc: The error raised by slack_sdk.

    Returns:
        A :class:`RetryableDeliveryError` for rate limits and transient
        server errors, otherwise a :class:`PermanentDeliveryError`.
    """
    response = exc.response
    code = str(response.get("error", "unknown_error")) if response is not None else "unknown_error"
    status = getattr(response, "status_code", None)

    if code in RETRYABLE_ERROR_CODES or status == 429 or (status is not None and status >= 500):
        return RetryableDeliveryError(
            channel_id,
            code,
            detail=f"HTTP {status}" if status else "",
            retry_after=_retry_after(response),
        )
    return PermanentDeliveryError(channel_id, code)


class SlackSender:
    """Posts broadcast messages to Slack channels.

    Args:
        client: A configured :class:`slack_sdk.WebClient`.
        identity: Optional display name and icon for every post.
    """

    def __init__(self, client: WebClient, identity: SenderIdentity | None = None) -> None:
        self._client = client
        self._identity_arguments = identity.message_arguments() if identity is not None else {}

    def send(self, channel_id: str, content: str) -> str:
        """Post *content* to *channel_id*.

        Args:
            channel_id: Slack channel ID.
            content: Message text (mentions already resolved).

        Returns:
            The Slack message timestamp (ts) for reference.

        Raises:
            RetryableDeliveryError: On rate limits, server errors and
                transport failures.
            PermanentDeliveryError: On every other Slack API error.
        """
        try:
            response = self._client.chat_postMessage(
                channel=channel_id,
                text=content,
                unfurl_links=False,
                unfurl_media=False,
                **self._identity_arguments,
            )
        except SlackApiError as exc:
            raise classify_slack_error(channel_id, exc) from exc
        except TRANSPORT_ERRORS as exc:
            raise RetryableDeliveryError(channel_id, type(exc).__name__, str(exc)) from exc
        return str(response["ts"])

    def verify_auth(self) -> dict[str, str]:
        """Call ``auth.test`` to confirm the token is accepted.

        Returns:
            The bot's ``team_id``, ``user_id`` and ``bot_id``.

        Raises:
            AuthenticationError: If Slack rejects the token or cannot be reached.
        """
        try:
            response = self._client.auth_test()
        except SlackApiError as exc:
            code = exc.response.get("error", "unknown_error") if exc.response else "unknown_error"
            raise AuthenticationError(f"Authentication failed: {code}") from exc
        except TRANSPORT_ERRORS as exc:
            raise AuthenticationError(f"Authentication failed: {exc}") from exc

        identity = {
            "team_id": str(response.get("team_id", "")),
            "user_id": str(response.get("user_id", "")),
            "bot_id": str(response.get("bot_id", "")),
        }
        logger.info("slack_auth_verified", **identity)
        return identity


__all__ = [
    "AUTH_ERROR_CODES",
    "RETRYABLE_ERROR_CODES",
    "SlackApiError",
    "SlackSender",
    "TRANSPORT_ERRORS",
    "classify_slack_error",
    "create_web_client",
]
