"""Per-channel retry policy built on tenacity.

Only :class:`RetryableDeliveryError` is retried.  The wait grows
exponentially with jitter, honors a server ``Retry-After`` as a floor, and
never exceeds the per-attempt timeout.  The last error is re-raised once
attempts are exhausted.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from slack_broadcast.domain.errors import RetryableDeliveryError

logger = structlog.get_logger()


class wait_retry_after:  # noqa: N801 - tenacity naming convention
    """Wait strategy that respects ``Retry-After`` up to a ceiling.

    Args:
        fallback: Strategy used when the error carries no ``retry_after``
            (or asks for less than the fallback).
        max_wait: Upper bound for any single wait, in seconds.
    """

    def __init__(self, fallback: Callable[[RetryCallState], float], max_wait: float) -> None:
        self._fallback = fallback
        self._max_wait = max_wait

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self._fallback(retry_state)
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = getattr(exc, "retry_after", None)
        if retry_after:
            delay = max(delay, float(retry_after))
        return min(delay, self._max_wait)


def _before_sleep_log(retry_state: RetryCallState) -> None:
    """Log a warning before each retry attempt.

    Args:
        retry_state: Tenacity retry state with attempt info.
    """
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "delivery_retrying",
        channel_id=getattr(exc, "channel_id", "unknown"),
        attempt=retry_state.attempt_number,
        error=str(exc),
        wait=retry_state.next_action.sleep if retry_state.next_action else 0,
    )


def delivery_retrying(retries: int, backoff_initial: float, max_wait: float) -> AsyncRetrying:
    """Create the retry controller for one delivery unit.

    Args:
        retries: Extra attempts allowed after the first (``retries + 1`` total).
        backoff_initial: First backoff delay in seconds; also the jitter span.
        max_wait: Ceiling for any single backoff, normally the per-attempt
            timeout.

    Returns:
        An :class:`AsyncRetrying` that retries only retryable delivery errors
        and re-raises the final error.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_retry_after(
            wait_exponential(multiplier=backoff_initial, max=max_wait)
            + wait_random(0, backoff_initial),
            max_wait,
        ),
        retry=retry_if_exception_type(RetryableDeliveryError),
        before_sleep=_before_sleep_log,
        reraise=True,
    )
