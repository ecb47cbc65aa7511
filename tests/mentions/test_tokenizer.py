"""Tests for the mention placeholder tokenizer."""

import pytest

from slack_broadcast.domain.types import MentionForm
from slack_broadcast.mentions.tokenizer import (
    MentionTokens,
    extract_tokens,
    is_boundary,
    is_name_char,
    tokenize,
)


def _names(text):
    return [token.name for token in extract_tokens(text)]


# ---------------------------------------------------------------------------
# Character classes
# ---------------------------------------------------------------------------


class TestCharacterClasses:
    @pytest.mark.parametrize("ch", ["a", "Z", "7", "_", "-", "é"])
    def test_name_chars(self, ch):
        assert is_name_char(ch)

    @pytest.mark.parametrize("ch", [" ", ".", "@", "{", "!"])
    def test_not_name_chars(self, ch):
        assert not is_name_char(ch)

    @pytest.mark.parametrize("ch", [" ", "\n", "\t", ".", ",", "!", "?", ":", ")", "+", "😀"])
    def test_boundaries(self, ch):
        assert is_boundary(ch)

    def test_at_sign_is_not_a_boundary(self):
        assert not is_boundary("@")

    def test_letters_are_not_boundaries(self):
        assert not is_boundary("a")


# ---------------------------------------------------------------------------
# Brace and bare forms
# ---------------------------------------------------------------------------


class TestForms:
    def test_brace_and_bare_spans(self):
        text = "Ping @{alice} and @bob."
        tokens = extract_tokens(text)

        assert [(t.name, t.start, t.end, t.form) for t in tokens] == [
            ("alice", 5, 13, MentionForm.BRACE),
            ("bob", 18, 22, MentionForm.BARE),
        ]
        assert [t.original for t in tokens] == ["@{alice}", "@bob"]

    def test_brace_name_is_stripped(self):
        assert _names("hi @{ Alice Smith }") == ["Alice Smith"]

    def test_empty_brace_is_literal(self):
        assert extract_tokens("hi @{} and @{   }") == []

    def test_unclosed_brace_is_literal(self):
        assert extract_tokens("hi @{alice") == []

    def test_brace_cannot_span_lines(self):
        assert extract_tokens("hi @{ali\nce}") == []

    def test_many_unclosed_braces_before_a_closed_one_on_next_line(self):
        text = "@{" * 50_000 + "\n@{bob}"
        tokens = extract_tokens(text)
        assert [(t.name, t.start) for t in tokens] == [("bob", 100_001)]

    def test_unclosed_brace_then_closed_brace_on_later_line(self):
        assert _names("@{one\n@{two} @{three\n@{four}") == ["two", "four"]

    def test_adjacent_brace_tokens(self):
        tokens = extract_tokens("@{a}@{b}")
        assert [(t.name, t.start, t.end) for t in tokens] == [("a", 0, 4), ("b", 4, 8)]

    def test_bare_at_end_of_text(self):
        assert _names("thanks @alice") == ["alice"]

    @pytest.mark.parametrize("suffix", [",", ".", "!", "?", ":", ")", " ", "\n"])
    def test_bare_ends_at_boundary(self, suffix):
        assert _names(f"@alice{suffix}") == ["alice"]

    def test_bare_with_hyphen_and_underscore(self):
        assert _names("@on-call_team now") == ["on-call_team"]

    def test_bare_unicode_name(self):
        assert _names("@josé here") == ["josé"]

    def test_lone_at_sign_is_literal(self):
        assert extract_tokens("meet @ noon") == []

    def test_email_is_not_a_mention(self):
        assert extract_tokens("mail user@example.com please") == []

    def test_glued_mentions_are_literal(self):
        assert extract_tokens("@a@b") == []


# ---------------------------------------------------------------------------
# Ignored regions
# ---------------------------------------------------------------------------


class TestIgnoredRegions:
    def test_fenced_code_block(self):
        text = "```\n@alice\n```\n@bob"
        tokens = extract_tokens(text)
        assert [(t.name, t.start) for t in tokens] == [("bob", 15)]

    def test_unterminated_fence_skips_rest(self):
        assert extract_tokens("@a\n```\n@b\n@c") == extract_tokens("@a")

    def test_inline_code_span(self):
        tokens = extract_tokens("`@alice` @bob")
        assert [(t.name, t.start) for t in tokens] == [("bob", 9)]

    def test_block_quote_line(self):
        tokens = extract_tokens("> @alice\n@bob")
        assert [(t.name, t.start) for t in tokens] == [("bob", 9)]

    def test_indented_block_quote_line(self):
        assert _names("   > @alice said hi") == []

    def test_quote_marker_mid_line_does_not_skip(self):
        assert _names("a > @alice") == ["alice"]


# ---------------------------------------------------------------------------
# Sequence properties
# ---------------------------------------------------------------------------


class TestSequence:
    def test_text_without_at_sign(self):
        assert extract_tokens("plain text " * 500) == []

    def test_spans_are_ordered_and_disjoint(self):
        text = "@a, @{b c} x@y @d-e. `@f` @{g}@h\n> @i\n@j"
        tokens = extract_tokens(text)

        assert [t.name for t in tokens] == ["a", "b c", "d-e", "g", "h", "j"]
        for token in tokens:
            assert text[token.start : token.end] == token.original
        for left, right in zip(tokens, tokens[1:]):
            assert left.end <= right.start

    def test_tokenize_is_lazy_and_restartable(self):
        tokens = tokenize("@a @b")
        assert isinstance(tokens, MentionTokens)
        assert tokens.text == "@a @b"

        first = [t.name for t in tokens]
        second = [t.name for t in tokens]
        assert first == second == ["a", "b"]

    def test_tokenize_matches_extract(self):
        text = "hello @{alice} and @bob"
        assert list(tokenize(text)) == extract_tokens(text)
