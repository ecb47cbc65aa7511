"""Domain-specific exception classes for the broadcast pipeline."""

from slack_broadcast.domain.types import BroadcastState, ErrorKind


class BroadcastError(Exception):
    """Base class for all domain errors in the broadcast pipeline.

    Attributes:
        kind: Failure class used by the CLI to pick an exit code.
    """

    kind: ErrorKind = ErrorKind.VALIDATION


class ValidationError(BroadcastError):
    """Raised when input is malformed or out of bounds.

    Covers message length, empty list names, duplicate or overflowing
    channel targets, and conflicting message sources.
    """

    kind = ErrorKind.VALIDATION


class ResolutionError(BroadcastError):
    """Raised when a channel or (under the strict policy) a mention cannot be resolved.

    Attributes:
        unresolved: The raw names or identifiers that failed to resolve.
    """

    kind = ErrorKind.RESOLUTION

    def __init__(self, message: str, unresolved: list[str] | None = None) -> None:
        self.unresolved = list(unresolved or [])
        super().__init__(message)


class DeliveryError(BroadcastError):
    """Raised by a sender when a single delivery attempt fails.

    Attributes:
        channel_id: The channel the attempt targeted.
        code: Slack error code or transport error name.
        retryable: Whether another attempt may succeed.
    """

    kind = ErrorKind.DELIVERY
    retryable = False

    def __init__(self, channel_id: str, code: str, detail: str = "") -> None:
        self.channel_id = channel_id
        self.code = code
        self.detail = detail
        message = f"{code}: {detail}" if detail else code
        super().__init__(message)


class RetryableDeliveryError(DeliveryError):
    """Transient failure (timeout, rate limit, network); worth retrying.

    Attributes:
        retry_after: Seconds the remote asked us to wait, if it said so.
    """

    retryable = True

    def __init__(
        self,
        channel_id: str,
        code: str,
        detail: str = "",
        retry_after: float | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(channel_id, code, detail)


class PermanentDeliveryError(DeliveryError):
    """Failure that will not go away on retry (bad channel, no permission)."""


class ConfigError(BroadcastError):
    """Raised when the configuration file or settings are missing or invalid."""

    kind = ErrorKind.CONFIG


class CredentialError(ConfigError):
    """Raised when the bot credential is missing or malformed."""


class AuthenticationError(CredentialError):
    """Raised when Slack rejects the bot credential."""


class InvalidTransitionError(BroadcastError):
    """Describes a rejected state transition.

    Returned (not raised) by the state machine; the orchestrator decides
    whether to raise it.

    Attributes:
        current_state: The state the machine was in when the transition was attempted.
        event: The event that was rejected.
    """

    def __init__(self, current_state: BroadcastState, event: str) -> None:
        self.current_state = current_state
        self.event = event
        super().__init__(f"Cannot apply event '{event}' in state '{current_state}'")
