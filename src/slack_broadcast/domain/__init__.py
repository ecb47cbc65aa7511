"""Domain types, models, and errors for the broadcast pipeline."""

from slack_broadcast.domain.errors import (
    AuthenticationError,
    BroadcastError,
    ConfigError,
    CredentialError,
    DeliveryError,
    InvalidTransitionError,
    PermanentDeliveryError,
    ResolutionError,
    RetryableDeliveryError,
    ValidationError,
)
from slack_broadcast.domain.models import (
    BroadcastMessage,
    BroadcastReport,
    ChannelTarget,
    DeliveryOutcome,
    MentionEntry,
    MentionToken,
    MessageInput,
    NamedChannelList,
    ResolutionSummary,
    ResolvedChannel,
    SenderIdentity,
)
from slack_broadcast.domain.types import (
    FILE_MESSAGE_LIMIT,
    INLINE_MESSAGE_LIMIT,
    MAX_CHANNELS_PER_LIST,
    BroadcastState,
    DeliveryStatus,
    ErrorKind,
    MentionForm,
    MentionType,
    MessageSource,
    UnresolvedMentionPolicy,
)

__all__ = [
    "FILE_MESSAGE_LIMIT",
    "INLINE_MESSAGE_LIMIT",
    "MAX_CHANNELS_PER_LIST",
    "AuthenticationError",
    "BroadcastError",
    "BroadcastMessage",
    "BroadcastReport",
    "BroadcastState",
    "ChannelTarget",
    "ConfigError",
    "CredentialError",
    "DeliveryError",
    "DeliveryOutcome",
    "DeliveryStatus",
    "ErrorKind",
    "InvalidTransitionError",
    "MentionEntry",
    "MentionForm",
    "MentionToken",
    "MentionType",
    "MessageInput",
    "MessageSource",
    "NamedChannelList",
    "PermanentDeliveryError",
    "ResolutionError",
    "ResolutionSummary",
    "ResolvedChannel",
    "RetryableDeliveryError",
    "SenderIdentity",
    "UnresolvedMentionPolicy",
    "ValidationError",
]
