"""Channel list configuration and resolution."""

from slack_broadcast.channels.config import ChannelConfig, load_channel_config
from slack_broadcast.channels.resolver import ChannelListResolver, parse_channel_target

__all__ = [
    "ChannelConfig",
    "ChannelListResolver",
    "load_channel_config",
    "parse_channel_target",
]
