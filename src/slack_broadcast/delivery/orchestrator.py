"""Broadcast orchestration: resolve, then deliver to every channel independently.

Lifecycle per broadcast: PENDING -> RESOLVING -> DELIVERING -> COMPLETED,
or RESOLVING -> FAILED when validation or resolution fails.  A failure in
RESOLVING is raised to the caller before any send; failures while
DELIVERING are recorded on the affected channel's outcome only.

Delivery runs on a bounded pool of asyncio workers pulling
``(index, channel)`` pairs from a queue.  Each worker owns its channel's
retry loop; the blocking Slack call runs in a thread under a per-attempt
timeout.  Outcomes land in an index-addressed collector, so the report is in
resolution order regardless of completion order.  One deadline covers the
whole delivery phase; channels still in flight when it expires are
recorded as timed out.

A per-attempt timeout abandons the waiting coroutine, not the worker thread:
the Slack call may still complete after the retry has been issued, so a
channel can receive the message twice.  Slack's ``chat.postMessage`` has no
idempotency key to prevent this; the report counts only the attempt that
returned.  Exceptions the sender does not classify fail that channel alone.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Protocol

import structlog

from slack_broadcast.channels.config import ChannelConfig
from slack_broadcast.channels.resolver import ChannelListResolver
from slack_broadcast.config import Settings
from slack_broadcast.delivery.retry import delivery_retrying
from slack_broadcast.domain.errors import (
    BroadcastError,
    DeliveryError,
    RetryableDeliveryError,
    ValidationError,
)
from slack_broadcast.domain.models import (
    BroadcastMessage,
    BroadcastReport,
    DeliveryOutcome,
    ResolvedChannel,
)
from slack_broadcast.domain.types import BroadcastState, DeliveryStatus, ErrorKind
from slack_broadcast.mentions.resolver import MentionResolution, MentionResolver
from slack_broadcast.state_machine.machine import BroadcastStateMachine
from slack_broadcast.state_machine.transitions import BroadcastEvent

logger = structlog.get_logger()


class Sender(Protocol):
    """The channel send primitive, called once per delivery attempt."""

    def send(self, channel_id: str, content: str) -> str:
        """Post *content* and return the message ts.

        Raises:
            RetryableDeliveryError: For transient failures.
            PermanentDeliveryError: For failures a retry cannot fix.
        """
        ...


class _OutcomeCollector:
    """Index-addressed outcome slots; the only state shared by workers."""

    def __init__(self, size: int) -> None:
        self._slots: list[DeliveryOutcome | None] = [None] * size
        self._lock = asyncio.Lock()

    async def put(self, index: int, outcome: DeliveryOutcome) -> None:
        async with self._lock:
            self._slots[index] = outcome

    def finalize(
        self,
        channels: tuple[ResolvedChannel, ...],
        attempts: list[int],
        deadline: float,
    ) -> tuple[DeliveryOutcome, ...]:
        """Return outcomes in channel order, failing any empty slot as timed out."""
        outcomes: list[DeliveryOutcome] = []
        for index, channel in enumerate(channels):
            outcome = self._slots[index]
            if outcome is None:
                outcome = DeliveryOutcome(
                    channel_id=channel.id,
                    channel_name=channel.name,
                    status=DeliveryStatus.FAILED,
                    attempts=max(1, attempts[index]),
                    error=f"broadcast_timeout: cancelled after {deadline:g}s overall deadline",
                    error_kind=ErrorKind.TIMEOUT,
                )
            outcomes.append(outcome)
        return tuple(outcomes)


class BroadcastOrchestrator:
    """Top-level driver for one or more broadcasts.

    Args:
        settings: Runtime settings (timeouts, retries, concurrency).
        sender: The channel send primitive.
        channel_resolver: Resolves named lists and explicit channels.
        mention_resolver: Substitutes mention placeholders.
        channel_config: Configured named lists; required only for
            list-targeted broadcasts.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        sender: Sender,
        channel_resolver: ChannelListResolver,
        mention_resolver: MentionResolver,
        channel_config: ChannelConfig | None = None,
    ) -> None:
        self._settings = settings
        self._sender = sender
        self._channels = channel_resolver
        self._mentions = mention_resolver
        self._config = channel_config
        self._machine = BroadcastStateMachine()

    @property
    def state(self) -> BroadcastState:
        """State of the most recent broadcast."""
        return self._machine.state

    def _advance(self, event: BroadcastEvent) -> None:
        result = self._machine.advance(event)
        if result.error is not None:
            raise result.error
        logger.debug("broadcast_state_changed", transition=str(event), state=str(result.state))

    def _resolve_targets(self, message: BroadcastMessage) -> tuple[ResolvedChannel, ...]:
        if message.channel is not None:
            return self._channels.resolve_channel(message.channel)
        if self._config is None:
            raise ValidationError("No channel configuration loaded; cannot target a named list")
        channel_list = self._config.get_list(message.list_name or "")
        return self._channels.resolve(channel_list)

    async def broadcast(self, message: BroadcastMessage) -> BroadcastReport:
        """Resolve and deliver one broadcast.

        Args:
            message: A validated broadcast request.

        Returns:
            A :class:`BroadcastReport` with one outcome per resolved channel,
            in resolution order.

        Raises:
            ValidationError: If the target list is unknown or invalid.
            ResolutionError: If a channel (or, under the strict policy, a
                mention) cannot be resolved.  No message has been sent.
        """
        self._machine = BroadcastStateMachine()
        started_at = datetime.now(tz=UTC)

        with structlog.contextvars.bound_contextvars(
            broadcast_target=message.target, dry_run=message.dry_run
        ):
            self._advance(BroadcastEvent.START)
            logger.info(
                "broadcast_started",
                source=str(message.content.source),
                length=len(message.content.content),
                preview=message.content.preview(),
            )

            try:
                mentions: MentionResolution = self._mentions.resolve(message.content.content)
                channels = self._resolve_targets(message)
            except BroadcastError as exc:
                self._advance(BroadcastEvent.FAIL)
                logger.error("broadcast_resolution_failed", kind=str(exc.kind), error=str(exc))
                raise

            self._advance(BroadcastEvent.RESOLVED)
            logger.info("broadcast_delivering", channels=len(channels))

            if message.dry_run:
                outcomes = self._simulate(channels)
            else:
                outcomes = await self._deliver_all(channels, mentions.text)

            self._advance(BroadcastEvent.FINISH)
            failed = sum(1 for o in outcomes if o.status == DeliveryStatus.FAILED)
            logger.info(
                "broadcast_completed",
                channels=len(outcomes),
                failed=failed,
            )

        return BroadcastReport(
            target=message.target,
            dry_run=message.dry_run,
            content=mentions.text,
            outcomes=outcomes,
            mentions=mentions.summary,
            started_at=started_at,
            completed_at=datetime.now(tz=UTC),
        )

    def _simulate(self, channels: tuple[ResolvedChannel, ...]) -> tuple[DeliveryOutcome, ...]:
        for channel in channels:
            logger.info("delivery_simulated", channel_id=channel.id, channel_name=channel.name)
        return tuple(
            DeliveryOutcome(
                channel_id=channel.id,
                channel_name=channel.name,
                status=DeliveryStatus.SIMULATED,
                attempts=1,
            )
            for channel in channels
        )

    async def _deliver_all(
        self, channels: tuple[ResolvedChannel, ...], content: str
    ) -> tuple[DeliveryOutcome, ...]:
        queue: asyncio.Queue[tuple[int, ResolvedChannel]] = asyncio.Queue()
        for item in enumerate(channels):
            queue.put_nowait(item)

        collector = _OutcomeCollector(len(channels))
        # Each slot is written only by the worker holding that index.
        attempts = [0] * len(channels)

        async def worker() -> None:
            while True:
                try:
                    index, channel = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                outcome = await self._deliver_one(index, channel, content, attempts)
                await collector.put(index, outcome)

        worker_count = min(len(channels), self._settings.max_concurrency)
        tasks = [
            asyncio.create_task(worker(), name=f"delivery-worker-{n}") for n in range(worker_count)
        ]
        deadline = self._settings.broadcast_timeout
        done, pending = await asyncio.wait(tasks, timeout=deadline)

        if pending:
            logger.warning(
                "broadcast_deadline_exceeded",
                deadline=deadline,
                cancelled_workers=len(pending),
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            # Re-raise anything a worker did not turn into an outcome.
            task.result()

        return collector.finalize(channels, attempts, deadline)

    async def _deliver_one(
        self,
        index: int,
        channel: ResolvedChannel,
        content: str,
        attempts: list[int],
    ) -> DeliveryOutcome:
        timeout = self._settings.slack_timeout

        async def attempt() -> str:
            attempts[index] += 1
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self._sender.send, channel.id, content),
                    timeout=timeout,
                )
            except TimeoutError as exc:
                raise RetryableDeliveryError(
                    channel.id, "timeout", f"no response within {timeout:g}s"
                ) from exc

        retrying = delivery_retrying(
            retries=self._settings.slack_retries,
            backoff_initial=self._settings.backoff_initial,
            max_wait=timeout,
        )

        try:
            ts = await retrying(attempt)
        except DeliveryError as exc:
            logger.error(
                "delivery_failed",
                channel_id=channel.id,
                channel_name=channel.name,
                attempts=attempts[index],
                retryable=exc.retryable,
                error=str(exc),
            )
            return _failed_outcome(channel, attempts[index], str(exc))
        except Exception as exc:
            # Anything the sender did not classify is permanent for this channel only.
            error = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
            logger.error(
                "delivery_failed",
                channel_id=channel.id,
                channel_name=channel.name,
                attempts=attempts[index],
                retryable=False,
                error=error,
                exc_info=True,
            )
            return _failed_outcome(channel, attempts[index], error)

        logger.info(
            "delivery_succeeded",
            channel_id=channel.id,
            channel_name=channel.name,
            attempts=attempts[index],
            ts=ts,
        )
        return DeliveryOutcome(
            channel_id=channel.id,
            channel_name=channel.name,
            status=DeliveryStatus.SUCCEEDED,
            attempts=attempts[index],
            message_ts=ts,
        )


def _failed_outcome(channel: ResolvedChannel, attempts: int, error: str) -> DeliveryOutcome:
    return DeliveryOutcome(
        channel_id=channel.id,
        channel_name=channel.name,
        status=DeliveryStatus.FAILED,
        attempts=max(1, attempts),
        error=error,
        error_kind=ErrorKind.DELIVERY,
    )
