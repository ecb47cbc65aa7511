"""Command-line entry point for broadcasting messages to Slack channels.

Two subcommands:

- ``broadcast`` -- send a message (inline or from a file) to a named channel
  list or a single channel, optionally as a dry run.
- ``channels`` -- show the named channel lists in the configuration file.

Exit codes: 0 every outcome succeeded (or was simulated), 1 invalid input,
2 missing or rejected credentials, 3 configuration file error, 4 resolution
failure, 5 one or more channel deliveries failed.

Usage::

    slack-broadcast broadcast "Deploy done @{alice}" --list engineering
    slack-broadcast broadcast --message-file notes.md --channel C0123456789 --dry-run
    slack-broadcast broadcast "Release out" --list engineering --sender-icon-emoji :tada:
    slack-broadcast channels --config channels.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from enum import IntEnum
from pathlib import Path

import pydantic
import structlog

from slack_broadcast.channels.config import ChannelConfig, load_channel_config
from slack_broadcast.channels.resolver import ChannelListResolver
from slack_broadcast.config import Settings, validate_credentials
from slack_broadcast.delivery.orchestrator import BroadcastOrchestrator
from slack_broadcast.directory import MentionDirectory
from slack_broadcast.domain.errors import (
    BroadcastError,
    ConfigError,
    CredentialError,
    ResolutionError,
)
from slack_broadcast.domain.models import BroadcastMessage, BroadcastReport
from slack_broadcast.domain.types import DeliveryStatus
from slack_broadcast.identity import resolve_sender_identity
from slack_broadcast.mentions.resolver import MentionResolver, format_resolution_summary
from slack_broadcast.messages import prepare_message
from slack_broadcast.slack.client import SlackSender, create_web_client
from slack_broadcast.slack.directory import SlackChannelDirectory

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Process exit statuses."""

    SUCCESS = 0
    INVALID_INPUT = 1
    CREDENTIALS = 2
    CONFIG = 3
    RESOLUTION = 4
    DELIVERY_FAILED = 5


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog for console output on stderr.

    Verbose mode logs at DEBUG; otherwise INFO.  stdout is left to the
    report so it can be piped.

    Args:
        verbose: Enable debug-level logging.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    log_level = logging.DEBUG if verbose else logging.INFO

    structlog.configure(
        processors=[*shared_processors, structlog.dev.ConsoleRenderer()],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="slack-broadcast")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="slack-broadcast",
        description="Broadcast a message to Slack channels",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    broadcast = subparsers.add_parser("broadcast", help="Send a message to channels")
    broadcast.add_argument(
        "message",
        nargs="?",
        default=None,
        help="Message text (omit when using --message-file)",
    )
    broadcast.add_argument(
        "--message-file",
        type=Path,
        default=None,
        help="Read the message from a UTF-8 file (max 2000 characters)",
    )
    broadcast.add_argument(
        "--list",
        dest="list_name",
        type=str,
        default=None,
        help="Named channel list from the configuration file",
    )
    broadcast.add_argument(
        "--channel",
        type=str,
        default=None,
        help="Single channel ID (C…) or #name",
    )
    broadcast.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve and report without sending",
    )
    broadcast.add_argument(
        "--sender-name",
        type=str,
        default=None,
        help="Override the configured sender display name",
    )
    broadcast.add_argument(
        "--sender-icon-emoji",
        type=str,
        default=None,
        help="Override the sender icon with an emoji, e.g. :rocket:",
    )
    broadcast.add_argument(
        "--sender-icon-url",
        type=str,
        default=None,
        help="Override the sender icon with an https image URL",
    )
    _add_common_arguments(broadcast)

    channels = subparsers.add_parser("channels", help="Show configured channel lists")
    _add_common_arguments(channels)

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to channel configuration YAML (default: $BROADCAST_CONFIG or channels.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug-level logging",
    )


def exit_code_for_error(exc: BroadcastError) -> ExitCode:
    """Classify a fail-fast error by kind."""
    if isinstance(exc, CredentialError):
        return ExitCode.CREDENTIALS
    if isinstance(exc, ConfigError):
        return ExitCode.CONFIG
    if isinstance(exc, ResolutionError):
        return ExitCode.RESOLUTION
    return ExitCode.INVALID_INPUT


def exit_code_for_report(report: BroadcastReport) -> ExitCode:
    """0 when every outcome succeeded or was simulated, else 5."""
    if any(outcome.status == DeliveryStatus.FAILED for outcome in report.outcomes):
        return ExitCode.DELIVERY_FAILED
    return ExitCode.SUCCESS


def format_report(report: BroadcastReport) -> list[str]:
    """Render a report as one line per channel plus a summary.

    Args:
        report: The broadcast report.

    Returns:
        Output lines, in channel resolution order.
    """
    total = len(report.outcomes)
    lines: list[str] = []

    if report.dry_run:
        lines.append(f'Dry run for "{report.target}" ({total} channels):')
        for outcome in report.outcomes:
            lines.append(f"~ #{outcome.channel_name} ({outcome.channel_id}): would send")
        lines.append("")
        lines.append(f"Message ({len(report.content)} characters):")
        lines.append(report.content[:200])
    else:
        lines.append(f'Broadcast to "{report.target}" ({total} channels):')
        for outcome in report.outcomes:
            if outcome.status == DeliveryStatus.SUCCEEDED:
                lines.append(
                    f"✓ #{outcome.channel_name}: Message sent (ts: {outcome.message_ts})"
                )
            else:
                plural = "" if outcome.attempts == 1 else "s"
                lines.append(
                    f"✗ #{outcome.channel_name}: Failed after {outcome.attempts} "
                    f"attempt{plural} - {outcome.error}"
                )
        lines.append("")
        succeeded = sum(1 for o in report.outcomes if o.status == DeliveryStatus.SUCCEEDED)
        lines.append(f"Broadcast completed: {succeeded}/{total} channels successful")
        failed = total - succeeded
        if failed:
            lines.append(f"{failed} channel{'' if failed == 1 else 's'} failed - see details above")

    lines.append("")
    lines.extend(format_resolution_summary(report.mentions))
    return lines


def _load_config_for(message: BroadcastMessage, config_path: Path) -> ChannelConfig | None:
    # Explicit-channel broadcasts still pick up mentions when a config file exists.
    if message.list_name is None and not config_path.exists():
        logger.debug("channel_config_skipped", path=str(config_path))
        return None
    return load_channel_config(config_path)


def run_broadcast(args: argparse.Namespace, settings: Settings, config_path: Path) -> ExitCode:
    """Validate input, wire services, run the broadcast and print the report."""
    try:
        message = prepare_message(
            inline=args.message,
            file_path=args.message_file,
            list_name=args.list_name,
            channel=args.channel,
            dry_run=args.dry_run,
        )
        validate_credentials(settings)
        config = _load_config_for(message, config_path)
        identity = resolve_sender_identity(
            config.sender if config is not None else None,
            name=args.sender_name,
            icon_emoji=args.sender_icon_emoji,
            icon_url=args.sender_icon_url,
        )

        client = create_web_client(settings)
        sender = SlackSender(client, identity)
        if not message.dry_run:
            sender.verify_auth()

        mentions = config.mention_directory() if config is not None else MentionDirectory()
        orchestrator = BroadcastOrchestrator(
            settings=settings,
            sender=sender,
            channel_resolver=ChannelListResolver(SlackChannelDirectory(client)),
            mention_resolver=MentionResolver(mentions, settings.unresolved_mentions),
            channel_config=config,
        )
        report = asyncio.run(orchestrator.broadcast(message))
    except BroadcastError as exc:
        print(f"❌ Error: {exc}", file=sys.stderr)
        return exit_code_for_error(exc)

    print("\n".join(format_report(report)))
    return exit_code_for_report(report)


def run_channels(config_path: Path) -> ExitCode:
    """Print every configured list with its targets."""
    try:
        config = load_channel_config(config_path)
    except ConfigError as exc:
        print(f"❌ Error: {exc}", file=sys.stderr)
        return exit_code_for_error(exc)

    for channel_list in config.channel_lists:
        print(f"{channel_list.name} ({len(channel_list.channels)} channels)")
        for target in channel_list.channels:
            print(f"  - {target.raw}")
    if config.mentions:
        print("")
        print(f"Mentions: {', '.join(sorted(config.mentions))}")
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, build settings once, and dispatch the subcommand."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except pydantic.ValidationError as exc:
        # Structured errors only; never the raw input, which may hold the token.
        print(f"❌ Error: invalid settings: {exc.errors(include_input=False)}", file=sys.stderr)
        return ExitCode.CONFIG

    if args.verbose:
        settings = settings.model_copy(update={"verbose": True})
    configure_logging(verbose=settings.verbose)

    config_path = args.config if args.config is not None else settings.config_path
    if args.command == "channels":
        return run_channels(config_path)
    return run_broadcast(args, settings, config_path)


if __name__ == "__main__":
    sys.exit(main())
