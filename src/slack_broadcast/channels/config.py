"""YAML channel-list and mention configuration.

Example file::

    channel_lists:
      - name: engineering
        channels: ["#dev", "#ops", "C0123456789"]
    mentions:
      alice: U0123ABCD
      oncall: {id: S0456EFGH, type: team}
    sender:
      name: Release Bot
      icon_emoji: ":rocket:"

Structural problems (missing file, invalid YAML, no ``channel_lists``,
duplicate list names, malformed channel references, a ``sender`` block
without a name and exactly one icon) raise
:class:`~slack_broadcast.domain.errors.ConfigError`.  Per-list bounds and
duplicate targets are left to the channel list resolver.
"""

from __future__ import annotations

from pathlib import Path

import pydantic
import structlog
import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, field_validator

from slack_broadcast.directory import MentionDirectory
from slack_broadcast.domain.errors import ConfigError, ValidationError
from slack_broadcast.domain.models import MentionEntry, NamedChannelList, SenderIdentity
from slack_broadcast.domain.types import MentionType

logger = structlog.get_logger()


class ChannelConfig(BaseModel):
    """Root of the channel configuration file."""

    channel_lists: list[NamedChannelList]
    mentions: dict[str, MentionEntry] = Field(default_factory=dict)
    sender: SenderIdentity | None = None

    @field_validator("channel_lists")
    @classmethod
    def lists_must_be_unique(cls, v: list[NamedChannelList]) -> list[NamedChannelList]:
        """Require at least one list and unique list names."""
        if not v:
            raise ValueError("configuration must contain at least one channel list")
        seen: set[str] = set()
        for channel_list in v:
            if channel_list.name in seen:
                raise ValueError(f"duplicate channel list name: {channel_list.name!r}")
            seen.add(channel_list.name)
        return v

    @field_validator("mentions", mode="before")
    @classmethod
    def normalize_mentions(cls, v: object) -> object:
        """Accept ``name: U123`` shorthand and default unknown types to ``user``."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        normalized: dict[str, object] = {}
        for name, entry in v.items():
            if isinstance(entry, str):
                normalized[str(name)] = {"id": entry, "type": MentionType.USER}
            elif isinstance(entry, dict):
                raw_type = entry.get("type")
                mention_type = MentionType.TEAM if raw_type == "team" else MentionType.USER
                normalized[str(name)] = {"id": entry.get("id", ""), "type": mention_type}
            else:
                normalized[str(name)] = entry
        return normalized

    @field_validator("sender")
    @classmethod
    def sender_must_be_complete(cls, v: SenderIdentity | None) -> SenderIdentity | None:
        """A configured sender needs a name and exactly one icon."""
        if v is not None and not v.is_complete:
            raise ValueError("sender requires a name and one of icon_emoji or icon_url")
        return v

    @property
    def list_names(self) -> list[str]:
        """Configured list names in file order."""
        return [channel_list.name for channel_list in self.channel_lists]

    def get_list(self, name: str) -> NamedChannelList:
        """Look up a named channel list.

        Raises:
            ValidationError: If no list with that name is configured.
        """
        for channel_list in self.channel_lists:
            if channel_list.name == name:
                return channel_list
        available = ", ".join(self.list_names)
        raise ValidationError(f"Channel list {name!r} not found. Available lists: {available}")

    def mention_directory(self) -> MentionDirectory:
        """Directory over the configured mention names."""
        return MentionDirectory(self.mentions)


def load_channel_config(path: Path) -> ChannelConfig:
    """Load and validate the channel configuration from a YAML file.

    Args:
        path: Path to the YAML config file.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If the file cannot be read or does not describe a valid
            configuration.
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    if path.is_dir():
        raise ConfigError(f"Configuration path is a directory, not a file: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc.strerror}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML syntax in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file must contain a YAML mapping: {path}")
    if "channel_lists" not in raw:
        raise ConfigError(f'Configuration file must contain a "channel_lists" section: {path}')

    try:
        config = ChannelConfig.model_validate(raw)
    except pydantic.ValidationError as exc:
        # Only the structured errors list is logged; the raw input stays out of logs.
        logger.error(
            "channel_config_invalid", path=str(path), errors=exc.errors(include_input=False)
        )
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration in {path}: {details}") from None

    logger.debug(
        "channel_config_loaded",
        path=str(path),
        lists=len(config.channel_lists),
        mentions=len(config.mentions),
        sender=config.sender is not None,
    )
    return config
