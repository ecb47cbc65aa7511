"""Mention placeholder tokenizing and substitution."""

from slack_broadcast.mentions.resolver import (
    MentionResolution,
    MentionResolver,
    format_resolution_summary,
)
from slack_broadcast.mentions.tokenizer import MentionTokens, extract_tokens, tokenize

__all__ = [
    "MentionResolution",
    "MentionResolver",
    "MentionTokens",
    "extract_tokens",
    "format_resolution_summary",
    "tokenize",
]
