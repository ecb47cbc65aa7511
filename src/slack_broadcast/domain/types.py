"""Domain enumerations for the broadcast pipeline."""

from enum import StrEnum


class MessageSource(StrEnum):
    """Where message content came from."""

    FILE = "file"
    INLINE = "inline"


class MentionForm(StrEnum):
    """Placeholder syntax a mention token was written in."""

    BRACE = "brace"
    BARE = "bare"


class MentionType(StrEnum):
    """Kind of Slack entity a mention name maps to."""

    USER = "user"
    TEAM = "team"


class UnresolvedMentionPolicy(StrEnum):
    """What to do with a mention whose name is not in the directory."""

    LITERAL = "literal"
    STRICT = "strict"


class DeliveryStatus(StrEnum):
    """Terminal result of a single channel delivery."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SIMULATED = "simulated"


class BroadcastState(StrEnum):
    """States in the broadcast lifecycle."""

    PENDING = "pending"
    RESOLVING = "resolving"
    DELIVERING = "delivering"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorKind(StrEnum):
    """Coarse failure classes consumed by the CLI exit-code mapping."""

    VALIDATION = "validation"
    RESOLUTION = "resolution"
    DELIVERY = "delivery"
    CONFIG = "config"
    TIMEOUT = "timeout"


# Slack channel and list limits
MAX_CHANNELS_PER_LIST = 100
FILE_MESSAGE_LIMIT = 2000
INLINE_MESSAGE_LIMIT = 40000
PREVIEW_LENGTH = 200
