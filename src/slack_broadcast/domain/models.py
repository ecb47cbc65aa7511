"""Pydantic v2 models for domain data structures in the broadcast pipeline."""

from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from slack_broadcast.domain.errors import ValidationError
from slack_broadcast.domain.types import (
    FILE_MESSAGE_LIMIT,
    INLINE_MESSAGE_LIMIT,
    PREVIEW_LENGTH,
    DeliveryStatus,
    ErrorKind,
    MentionForm,
    MentionType,
    MessageSource,
)

_CHANNEL_NAME_RE = re.compile(r"^[a-z0-9_-]{1,80}$")
_CHANNEL_ID_RE = re.compile(r"^[CG][A-Z0-9]{8,12}$", re.IGNORECASE)
_EMOJI_RE = re.compile(r"^:[^:\s]+:$")


class MentionToken(BaseModel):
    """One recognized placeholder occurrence in message text.

    ``start`` is inclusive and ``end`` exclusive, so ``text[start:end]``
    is always the original placeholder.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    start: int
    end: int
    form: MentionForm
    original: str

    @model_validator(mode="after")
    def span_must_be_positive(self) -> MentionToken:
        """Ensure the span covers at least the ``@`` and one name character."""
        if self.start < 0 or self.end <= self.start + 1:
            raise ValueError(f"invalid token span [{self.start}, {self.end})")
        return self


class MentionEntry(BaseModel):
    """Directory entry for a mention name."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: MentionType = MentionType.USER

    @field_validator("id")
    @classmethod
    def id_must_not_be_empty(cls, v: str) -> str:
        """Strip the identifier and reject blanks."""
        v = v.strip()
        if not v:
            raise ValueError("mention id must not be empty")
        return v

    def reference(self) -> str:
        """Return the Slack markup that pings this entry."""
        if self.type == MentionType.TEAM:
            return f"<!subteam^{self.id}>"
        return f"<@{self.id}>"


class ChannelTarget(BaseModel):
    """A raw channel reference as configured: ``#name`` or a channel ID.

    Channel IDs are normalized to upper case; names keep their ``#`` prefix.
    """

    model_config = ConfigDict(frozen=True)

    raw: str

    @field_validator("raw")
    @classmethod
    def raw_must_be_channel_reference(cls, v: str) -> str:
        """Accept ``#lowercase-name`` or a ``C``/``G`` channel ID."""
        v = v.strip()
        if not v:
            raise ValueError("channel identifier must not be empty")
        if v.startswith("#"):
            if not _CHANNEL_NAME_RE.match(v[1:]):
                raise ValueError(
                    f"invalid channel name {v!r}: use lowercase letters, numbers, "
                    "hyphens and underscores (max 80 characters)"
                )
            return v
        if _CHANNEL_ID_RE.match(v):
            return v.upper()
        raise ValueError(
            f"invalid channel identifier {v!r}: expected '#name' or an ID like C1234567890"
        )

    @property
    def is_name(self) -> bool:
        """True when the target refers to a channel by name."""
        return self.raw.startswith("#")


class ResolvedChannel(BaseModel):
    """A channel after a successful directory lookup."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    resolved: bool = True
    is_private: bool = False
    is_member: bool = True

    @property
    def display_name(self) -> str:
        """Return ``#name`` for humans, falling back to the ID."""
        return f"#{self.name}" if self.name else self.id


class NamedChannelList(BaseModel):
    """An operator-defined group of channels resolved together as a unit.

    Validation of bounds and duplicates is deferred to the channel list
    resolver so it can fail before any directory call. The resolved set is
    written once, after every target resolved.
    """

    name: str
    channels: list[ChannelTarget] = Field(default_factory=list)

    _resolved: tuple[ResolvedChannel, ...] | None = PrivateAttr(default=None)

    @field_validator("channels", mode="before")
    @classmethod
    def channels_from_strings(cls, v: object) -> object:
        """Accept plain strings as configured in YAML."""
        if not isinstance(v, list):
            return v
        targets: list[object] = []
        for index, item in enumerate(v):
            if isinstance(item, str):
                targets.append({"raw": item})
            elif isinstance(item, ChannelTarget | dict):
                targets.append(item)
            else:
                raise ValueError(f"channel at index {index} must be a string")
        return targets

    @property
    def resolved_channels(self) -> tuple[ResolvedChannel, ...] | None:
        """The resolved channels in target order, or ``None`` before resolution."""
        return self._resolved

    @property
    def is_resolved(self) -> bool:
        """True once resolution has succeeded for every target."""
        return self._resolved is not None

    def set_resolved(self, channels: list[ResolvedChannel]) -> None:
        """Record the resolved channel set.

        Raises:
            ValueError: If the list was already resolved, or the set does
                not cover every target.
        """
        if self._resolved is not None:
            raise ValueError(f"channel list {self.name!r} is already resolved")
        if len(channels) != len(self.channels):
            raise ValueError(
                f"channel list {self.name!r} has {len(self.channels)} targets "
                f"but {len(channels)} resolved channels were given"
            )
        self._resolved = tuple(channels)


class SenderIdentity(BaseModel):
    """Display name and icon posted alongside every message.

    Blank strings count as unset.  At most one icon may be set; posting with
    a custom identity needs the ``chat:write.customize`` scope.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    icon_emoji: str | None = None
    icon_url: str | None = None

    @field_validator("name", "icon_emoji", "icon_url", mode="before")
    @classmethod
    def blank_is_unset(cls, v: object) -> object:
        """Strip strings and turn empty ones into ``None``."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("icon_emoji")
    @classmethod
    def emoji_must_be_shortcode(cls, v: str | None) -> str | None:
        """Require ``:shortcode:`` form."""
        if v is not None and not _EMOJI_RE.match(v):
            raise ValueError(f"icon emoji must look like :rocket:, got {v!r}")
        return v

    @field_validator("icon_url")
    @classmethod
    def url_must_be_https(cls, v: str | None) -> str | None:
        """Require an https URL."""
        if v is not None and not v.lower().startswith("https://"):
            raise ValueError(f"icon URL must start with https://, got {v!r}")
        return v

    @model_validator(mode="after")
    def one_icon_at_most(self) -> SenderIdentity:
        """Reject an emoji and a URL together."""
        if self.icon_emoji is not None and self.icon_url is not None:
            raise ValueError("provide either icon_emoji or icon_url, not both")
        return self

    @property
    def is_empty(self) -> bool:
        """True when nothing would change the default bot identity."""
        return self.name is None and self.icon_emoji is None and self.icon_url is None

    @property
    def is_complete(self) -> bool:
        """True when both a name and an icon are set."""
        return self.name is not None and (
            self.icon_emoji is not None or self.icon_url is not None
        )

    def message_arguments(self) -> dict[str, str]:
        """Keyword arguments for ``chat.postMessage``; unset fields are omitted."""
        arguments = {
            "username": self.name,
            "icon_emoji": self.icon_emoji,
            "icon_url": self.icon_url,
        }
        return {key: value for key, value in arguments.items() if value is not None}


class MessageInput(BaseModel):
    """Validated message content pending send.

    Build it with :meth:`from_file_content` or :meth:`from_inline`; the two
    paths apply different trimming and length limits.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    source: MessageSource
    limit: int
    file_path: str | None = None

    @classmethod
    def from_file_content(cls, raw: str, source_path: str) -> MessageInput:
        """Build a file-sourced message.

        Trailing whitespace and newlines are trimmed; leading and internal
        whitespace is kept.

        Raises:
            ValidationError: If the trimmed content is empty or longer than
                2000 characters.
        """
        content = raw.rstrip()
        if not content:
            raise ValidationError(
                "Message cannot be empty after trimming trailing whitespace "
                f"(file: {source_path})"
            )
        if len(content) > FILE_MESSAGE_LIMIT:
            raise ValidationError(
                f"Message from file cannot exceed {FILE_MESSAGE_LIMIT} characters "
                f"(got {len(content)}, file: {source_path})"
            )
        return cls(
            content=content,
            source=MessageSource.FILE,
            limit=FILE_MESSAGE_LIMIT,
            file_path=source_path,
        )

    @classmethod
    def from_inline(cls, raw: str) -> MessageInput:
        """Build an inline message; no trimming is applied.

        Raises:
            ValidationError: If the content is empty or longer than 40000
                characters.
        """
        if not raw:
            raise ValidationError("Message cannot be empty")
        if len(raw) > INLINE_MESSAGE_LIMIT:
            raise ValidationError(
                f"Message cannot exceed {INLINE_MESSAGE_LIMIT} characters (got {len(raw)})"
            )
        return cls(content=raw, source=MessageSource.INLINE, limit=INLINE_MESSAGE_LIMIT)

    @property
    def is_too_long(self) -> bool:
        """True when content exceeds the source's limit."""
        return len(self.content) > self.limit

    def preview(self) -> str:
        """Return the first 200 characters for logging."""
        return self.content[:PREVIEW_LENGTH]


class BroadcastMessage(BaseModel):
    """A single send request: content plus exactly one target."""

    model_config = ConfigDict(frozen=True)

    content: MessageInput
    list_name: str | None = None
    channel: str | None = None
    dry_run: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    @model_validator(mode="after")
    def exactly_one_target(self) -> BroadcastMessage:
        """Ensure exactly one of ``list_name`` and ``channel`` is set."""
        if (self.list_name is None) == (self.channel is None):
            raise ValueError("exactly one of list_name or channel must be given")
        return self

    @property
    def target(self) -> str:
        """Human-readable target description."""
        return f"list:{self.list_name}" if self.list_name is not None else f"channel:{self.channel}"


class DeliveryOutcome(BaseModel):
    """The per-channel terminal result of a broadcast attempt."""

    model_config = ConfigDict(frozen=True)

    channel_id: str
    channel_name: str = ""
    status: DeliveryStatus
    attempts: int = 1
    error: str | None = None
    error_kind: ErrorKind | None = None
    message_ts: str | None = None

    @field_validator("attempts")
    @classmethod
    def attempts_must_be_positive(cls, v: int) -> int:
        """Every terminal outcome represents at least one attempt."""
        if v < 1:
            raise ValueError("attempts must be at least 1")
        return v

    @model_validator(mode="after")
    def failure_requires_error(self) -> DeliveryOutcome:
        """A failed outcome must say why."""
        if self.status == DeliveryStatus.FAILED and not self.error:
            raise ValueError("failed outcomes require error detail")
        return self

    @property
    def ok(self) -> bool:
        """True for succeeded or simulated outcomes."""
        return self.status != DeliveryStatus.FAILED


class ResolutionSummary(BaseModel):
    """Aggregate result of mention substitution."""

    model_config = ConfigDict(frozen=True)

    replacements: dict[str, int] = Field(default_factory=dict)
    unresolved: list[str] = Field(default_factory=list)
    had_placeholders: bool = False

    @property
    def total_replacements(self) -> int:
        """Sum of all replacement counts."""
        return sum(self.replacements.values())


class BroadcastReport(BaseModel):
    """Ordered delivery outcomes for one broadcast, in resolution order.

    The report does not fold outcomes into a single pass/fail flag; callers
    decide what "success" means from :attr:`outcomes`.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    dry_run: bool
    content: str
    outcomes: tuple[DeliveryOutcome, ...]
    mentions: ResolutionSummary = Field(default_factory=ResolutionSummary)
    started_at: datetime
    completed_at: datetime
