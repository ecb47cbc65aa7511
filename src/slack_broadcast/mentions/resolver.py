"""Mention substitution: turn placeholder tokens into Slack mention markup.

Each token's name is looked up in a :class:`~slack_broadcast.directory.Directory`.
Hits are replaced by the entry's canonical reference (``<@U…>`` for users,
``<!subteam^S…>`` for user groups); the reserved name ``here`` always
becomes ``<!here>``.  Misses follow an explicit
:class:`~slack_broadcast.domain.types.UnresolvedMentionPolicy`.
"""

from __future__ import annotations

import structlog
from pydantic import BaseModel, ConfigDict

from slack_broadcast.directory import Directory
from slack_broadcast.domain.errors import ResolutionError
from slack_broadcast.domain.models import MentionEntry, ResolutionSummary
from slack_broadcast.domain.types import UnresolvedMentionPolicy
from slack_broadcast.mentions.tokenizer import tokenize

logger = structlog.get_logger()

HERE_NAME = "here"
HERE_REFERENCE = "<!here>"


class MentionResolution(BaseModel):
    """Resolved text plus a summary of what was substituted."""

    model_config = ConfigDict(frozen=True)

    text: str
    summary: ResolutionSummary


class MentionResolver:
    """Substitutes mention placeholders using a directory lookup.

    Args:
        directory: Lookup from mention name to :class:`MentionEntry`.
        policy: What to do with names the directory does not know.
            ``literal`` leaves the placeholder text untouched; ``strict``
            raises :class:`ResolutionError` for the whole message.
    """

    def __init__(
        self,
        directory: Directory[MentionEntry],
        policy: UnresolvedMentionPolicy = UnresolvedMentionPolicy.LITERAL,
    ) -> None:
        self._directory = directory
        self._policy = policy

    @property
    def policy(self) -> UnresolvedMentionPolicy:
        """The configured unresolved-mention policy."""
        return self._policy

    def _reference_for(self, name: str) -> str | None:
        if name == HERE_NAME:
            return HERE_REFERENCE
        entry = self._directory.resolve(name)
        return entry.reference() if entry is not None else None

    def resolve(self, text: str) -> MentionResolution:
        """Replace every resolvable mention in *text*.

        Text outside token spans is copied through unchanged and in order.

        Args:
            text: Raw message text.

        Returns:
            The resolved text and a :class:`ResolutionSummary` with
            per-name replacement counts (sorted by name) and unresolved
            placeholders in order of first appearance.

        Raises:
            ResolutionError: If any mention is unresolved and the policy is
                ``strict``.
        """
        parts: list[str] = []
        last = 0
        counts: dict[str, int] = {}
        unresolved: list[str] = []
        had_placeholders = False

        for token in tokenize(text):
            had_placeholders = True
            parts.append(text[last : token.start])
            reference = self._reference_for(token.name)
            if reference is None:
                parts.append(token.original)
                if token.original not in unresolved:
                    unresolved.append(token.original)
            else:
                parts.append(reference)
                counts[token.name] = counts.get(token.name, 0) + 1
            last = token.end

        if not had_placeholders:
            return MentionResolution(text=text, summary=ResolutionSummary())

        if unresolved and self._policy == UnresolvedMentionPolicy.STRICT:
            raise ResolutionError(
                f"Unresolved mentions: {', '.join(unresolved)}",
                unresolved=unresolved,
            )

        parts.append(text[last:])
        summary = ResolutionSummary(
            replacements=dict(sorted(counts.items())),
            unresolved=unresolved,
            had_placeholders=True,
        )
        logger.debug(
            "mentions_resolved",
            replacements=summary.replacements,
            total=summary.total_replacements,
            unresolved=unresolved,
        )
        return MentionResolution(text="".join(parts), summary=summary)


def format_resolution_summary(summary: ResolutionSummary) -> list[str]:
    """Format a resolution summary into deterministic human-readable lines."""
    if not summary.had_placeholders:
        return ["Placeholders: none"]

    if summary.replacements:
        pairs = ", ".join(f"{name}={count}" for name, count in summary.replacements.items())
        replacement_line = f"Replacements: {pairs} (total={summary.total_replacements})"
    else:
        replacement_line = "Replacements: (total=0)"

    unresolved_line = (
        f"Unresolved: {', '.join(summary.unresolved)}" if summary.unresolved else "Unresolved: none"
    )
    return [replacement_line, unresolved_line]
