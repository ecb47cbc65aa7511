"""Building a validated :class:`BroadcastMessage` from raw CLI input."""

from __future__ import annotations

from pathlib import Path

import structlog

from slack_broadcast.domain.errors import ValidationError
from slack_broadcast.domain.models import BroadcastMessage, MessageInput

logger = structlog.get_logger()


def load_message_file(path: Path) -> MessageInput:
    """Read a UTF-8 message file and validate it as file-sourced content.

    Args:
        path: Message file path, relative paths resolved against the
            working directory.

    Returns:
        A file-sourced :class:`MessageInput` (trailing whitespace trimmed,
        at most 2000 characters).

    Raises:
        ValidationError: If the file is missing, unreadable, not UTF-8, or
            its content violates the file-message limits.
    """
    absolute = path.expanduser().resolve()
    try:
        raw = absolute.read_text(encoding="utf-8")
    except (FileNotFoundError, NotADirectoryError):
        raise ValidationError(f"Message file not found: {path}") from None
    except IsADirectoryError:
        raise ValidationError(f"Message file path is a directory: {path}") from None
    except PermissionError:
        raise ValidationError(f"Cannot read message file (permission denied): {path}") from None
    except UnicodeDecodeError as exc:
        raise ValidationError(f"Message file is not valid UTF-8: {path} ({exc.reason})") from None

    message = MessageInput.from_file_content(raw, str(absolute))
    logger.debug(
        "message_file_loaded",
        path=str(absolute),
        length=len(message.content),
        preview=message.preview(),
    )
    return message


def prepare_message(
    *,
    inline: str | None = None,
    file_path: Path | None = None,
    list_name: str | None = None,
    channel: str | None = None,
    dry_run: bool = False,
) -> BroadcastMessage:
    """Validate raw input into a single immutable :class:`BroadcastMessage`.

    Exactly one message source (inline text or a file) and exactly one
    target (a named list or an explicit channel) must be given.  This runs
    before any resolution, so rejected input never touches Slack.

    Raises:
        ValidationError: On conflicting or missing sources/targets, or
            content outside the source's length limits.
    """
    if inline is not None and file_path is not None:
        raise ValidationError("Provide either an inline message or --message-file, not both")
    if inline is None and file_path is None:
        raise ValidationError("A message is required: pass it inline or with --message-file")

    if list_name is not None and channel is not None:
        raise ValidationError("Provide either --list or --channel, not both")
    if list_name is None and channel is None:
        raise ValidationError("A target is required: pass --list or --channel")
    if list_name is not None and not list_name.strip():
        raise ValidationError("Channel list name cannot be empty")

    content = (
        load_message_file(file_path)
        if file_path is not None
        else MessageInput.from_inline(inline or "")
    )
    return BroadcastMessage(
        content=content,
        list_name=list_name,
        channel=channel,
        dry_run=dry_run,
    )
