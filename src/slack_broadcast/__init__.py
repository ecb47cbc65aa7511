"""Broadcast a message to Slack channels with mention substitution and per-channel reports."""

__version__ = "0.1.0"
