"""Tests for pi.prompts.utils -- width measurement, wrapping and truncation."""

from __future__ import annotations

import pytest

from pi.prompts.utils import (
    RESET,
    pad_to_width,
    strip_ansi,
    truncate_to_width,
    visible_width,
    wrap_ansi,
)


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


class TestVisibleWidth:
    @pytest.mark.parametrize(
        "text,width",
        [
            ("", 0),
            ("abc", 3),
            ("\x1b[31mab\x1b[39m", 2),
            ("日本", 4),
            ("é", 1),
            ("👍", 2),
            ("a\tb", 5),
        ],
    )
    def test_widths(self, text: str, width: int) -> None:
        assert visible_width(text) == width

    def test_osc_hyperlink_takes_no_space(self) -> None:
        link = "\x1b]8;;https://example.com\x07site\x1b]8;;\x07"
        assert visible_width(link) == 4


class TestStripAnsi:
    def test_removes_sgr(self) -> None:
        assert strip_ansi("\x1b[1mbold\x1b[22m") == "bold"

    def test_leaves_plain_text(self) -> None:
        assert strip_ansi("plain") == "plain"


# ---------------------------------------------------------------------------
# wrap_ansi
# ---------------------------------------------------------------------------


class TestWrapAnsi:
    def test_breaks_at_space(self) -> None:
        assert wrap_ansi("hello world", 5) == ["hello", "world"]

    def test_word_break_keeps_whole_words(self) -> None:
        assert wrap_ansi("one two three", 9) == ["one two", "three"]

    def test_hard_wrap_cuts_at_width(self) -> None:
        assert wrap_ansi("abcdef", 3, hard=True) == ["abc", "def"]

    def test_newlines_always_break(self) -> None:
        assert wrap_ansi("a\nb", 10) == ["a", "b"]

    def test_wide_characters_count_double(self) -> None:
        assert wrap_ansi("日本語", 4, hard=True) == ["日本", "語"]

    def test_styles_reopen_after_a_break(self) -> None:
        lines = wrap_ansi("\x1b[31mabcdef\x1b[39m", 3, hard=True)
        assert len(lines) == 2
        assert lines[0].endswith(RESET)
        assert lines[1].startswith("\x1b[31m")
        assert strip_ansi(lines[1]) == "def"

    def test_non_positive_width_only_splits_lines(self) -> None:
        assert wrap_ansi("abc\ndef", 0) == ["abc", "def"]


# ---------------------------------------------------------------------------
# truncate / pad
# ---------------------------------------------------------------------------


class TestTruncateToWidth:
    def test_short_text_unchanged(self) -> None:
        assert truncate_to_width("hi", 8) == "hi"

    def test_cut_with_ellipsis(self) -> None:
        assert truncate_to_width("hello world", 8) == "hello..."

    def test_wide_characters(self) -> None:
        assert truncate_to_width("日本語", 5) == "日..."

    def test_zero_width(self) -> None:
        assert truncate_to_width("hello", 0) == ""

    def test_styled_text_is_reset_before_ellipsis(self) -> None:
        cut = truncate_to_width("\x1b[31mhello world\x1b[39m", 8)
        assert cut.endswith(RESET + "...")
        assert visible_width(cut) == 8


class TestPadToWidth:
    def test_pads(self) -> None:
        assert pad_to_width("ab", 4) == "ab  "

    def test_never_cuts(self) -> None:
        assert pad_to_width("abcdef", 3) == "abcdef"
