"""Linear-scan tokenizer for mention placeholders in message text.

Two placeholder forms are recognized:

- ``@{name}`` -- everything up to the closing brace on the same line,
  stripped. Empty names are left as literal text.
- ``@name`` -- letters, digits, ``_`` and ``-``, and only when the next
  character is a boundary (whitespace, punctuation or symbol other than
  ``@``, or end of text) and the ``@`` is not glued to a preceding name
  character (so ``user@example.com`` is not a mention).

Placeholders inside fenced code blocks, inline code spans and block-quote
lines are ignored. Text without an ``@`` is rejected with one ``in`` check
before any per-character work.

Usage::

    for token in tokenize("Ping @{alice} and @bob."):
        print(token.name, token.start, token.end)
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterator

from slack_broadcast.domain.models import MentionToken
from slack_broadcast.domain.types import MentionForm

_FENCE = "```"
_NAME_PUNCTUATION = frozenset("_-")


def is_name_char(ch: str) -> bool:
    """Return True if *ch* may appear in a bare mention name."""
    return ch.isalnum() or ch in _NAME_PUNCTUATION


def is_boundary(ch: str) -> bool:
    """Return True if *ch* may terminate a bare mention.

    Whitespace and any Unicode punctuation or symbol count, except ``@``
    itself (``@a@b`` is not two mentions).
    """
    if ch.isspace():
        return True
    if ch == "@":
        return False
    return unicodedata.category(ch)[0] in ("P", "S")


class MentionTokens:
    """Lazy, restartable sequence of mention tokens for one piece of text.

    Every iteration rescans the text from the start, so the same object can
    be consumed more than once.
    """

    def __init__(self, text: str) -> None:
        self._text = text

    @property
    def text(self) -> str:
        """The text being tokenized."""
        return self._text

    def __iter__(self) -> Iterator[MentionToken]:
        return _scan(self._text)

    def __repr__(self) -> str:
        return f"MentionTokens(len={len(self._text)})"


def tokenize(text: str) -> MentionTokens:
    """Return the mention tokens in *text* as a lazy sequence."""
    return MentionTokens(text)


def extract_tokens(text: str) -> list[MentionToken]:
    """Return every mention token in *text*, ordered by start offset."""
    return list(_scan(text))


def _next_line(text: str, i: int) -> int:
    nl = text.find("\n", i)
    return len(text) if nl == -1 else nl + 1


def _find_or_end(text: str, sub: str, start: int) -> int:
    found = text.find(sub, start)
    return len(text) if found == -1 else found


def _is_quote_line(text: str, i: int) -> bool:
    n = len(text)
    while i < n and text[i] == " ":
        i += 1
    return i < n and text[i] == ">"


def _match_brace(text: str, at: int, close: int) -> MentionToken | None:
    if close == -1:
        return None
    name = text[at + 2 : close].strip()
    if not name:
        return None
    return MentionToken(
        name=name,
        start=at,
        end=close + 1,
        form=MentionForm.BRACE,
        original=text[at : close + 1],
    )


def _match_bare(text: str, at: int) -> MentionToken | None:
    if at > 0 and is_name_char(text[at - 1]):
        return None
    n = len(text)
    j = at + 1
    while j < n and is_name_char(text[j]):
        j += 1
    if j == at + 1:
        return None
    if j < n and not is_boundary(text[j]):
        return None
    return MentionToken(
        name=text[at + 1 : j],
        start=at,
        end=j,
        form=MentionForm.BARE,
        original=text[at:j],
    )


def _scan(text: str) -> Iterator[MentionToken]:
    if "@" not in text:
        return

    n = len(text)
    i = 0
    in_fence = False
    in_code = False
    # Next "}" and "\n" at or after the last lookup; reused until passed.
    next_close = -1
    next_newline = -1

    while i < n:
        # Line-level states: fences toggle, fenced and quoted lines are skipped whole.
        if i == 0 or text[i - 1] == "\n":
            if text.startswith(_FENCE, i):
                in_fence = not in_fence
                in_code = False
                i = _next_line(text, i)
                continue
            if in_fence or _is_quote_line(text, i):
                i = _next_line(text, i)
                continue

        ch = text[i]
        if ch == "`":
            in_code = not in_code
            i += 1
            continue
        if in_code or ch != "@":
            i += 1
            continue

        if i + 1 < n and text[i + 1] == "{":
            if next_newline < i:
                next_newline = _find_or_end(text, "\n", i)
            if next_close < i + 2:
                next_close = _find_or_end(text, "}", i + 2)
            close = next_close if next_close < next_newline else -1
            token = _match_brace(text, i, close)
        else:
            token = _match_bare(text, i)

        if token is None:
            i += 1
            continue

        yield token
        i = token.end
