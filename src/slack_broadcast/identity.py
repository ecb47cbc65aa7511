"""Merging the configured sender identity with per-run CLI overrides."""

from __future__ import annotations

import pydantic
import structlog

from slack_broadcast.domain.errors import ValidationError
from slack_broadcast.domain.models import SenderIdentity

logger = structlog.get_logger()


def resolve_sender_identity(
    configured: SenderIdentity | None,
    *,
    name: str | None = None,
    icon_emoji: str | None = None,
    icon_url: str | None = None,
) -> SenderIdentity | None:
    """Apply CLI overrides on top of the configured sender identity.

    An override replaces the configured value.  An icon override of one
    kind also drops the configured icon of the other kind, so the result
    never carries both.  Blank icon overrides are ignored.

    Args:
        configured: The ``sender`` block from the configuration file, if any.
        name: ``--sender-name`` value.
        icon_emoji: ``--sender-icon-emoji`` value, e.g. ``:rocket:``.
        icon_url: ``--sender-icon-url`` value (https only).

    Returns:
        The identity to post with, or ``None`` to keep the bot's default.

    Raises:
        ValidationError: If the name override is blank, both icon overrides
            are given, or an override is malformed.
    """
    if name is not None and not name.strip():
        raise ValidationError("Sender name override cannot be empty")
    icon_emoji = icon_emoji.strip() if icon_emoji and icon_emoji.strip() else None
    icon_url = icon_url.strip() if icon_url and icon_url.strip() else None
    if icon_emoji is not None and icon_url is not None:
        raise ValidationError("Provide either --sender-icon-emoji or --sender-icon-url, not both")

    fields = configured.model_dump() if configured is not None else {}
    overridden = name is not None or icon_emoji is not None or icon_url is not None
    if name is not None:
        fields["name"] = name
    if icon_emoji is not None:
        fields["icon_emoji"] = icon_emoji
        fields["icon_url"] = None
    if icon_url is not None:
        fields["icon_url"] = icon_url
        fields["icon_emoji"] = None

    try:
        identity = SenderIdentity.model_validate(fields)
    except pydantic.ValidationError as exc:
        details = "; ".join(err["msg"] for err in exc.errors())
        raise ValidationError(f"Invalid sender identity: {details}") from None

    if identity.is_empty:
        return None
    logger.debug(
        "sender_identity_resolved",
        source="cli" if overridden else "config",
        name=identity.name,
        icon_emoji=identity.icon_emoji,
        icon_url=identity.icon_url,
    )
    return identity
