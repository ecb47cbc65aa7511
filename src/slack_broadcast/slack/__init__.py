"""Slack integration: message sending and channel lookup."""

from slack_broadcast.slack.client import SlackSender, classify_slack_error, create_web_client
from slack_broadcast.slack.directory import SlackChannelDirectory

__all__ = [
    "SlackChannelDirectory",
    "SlackSender",
    "classify_slack_error",
    "create_web_client",
]
