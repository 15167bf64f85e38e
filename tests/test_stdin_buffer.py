"""Tests for pi.prompts.stdin_buffer.InputBuffer."""

from __future__ import annotations

import asyncio

import pytest

from pi.prompts.keys import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from pi.prompts.stdin_buffer import InputBuffer, sequence_status, split_sequences


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Collector:
    """Collects emitted data/paste events for assertions."""

    def __init__(self) -> None:
        self.data: list[str] = []
        self.pastes: list[str] = []

    def on_data(self, d: str) -> None:
        self.data.append(d)

    def on_paste(self, d: str) -> None:
        self.pastes.append(d)


def make_buffer(timeout: float = 0.01) -> tuple[InputBuffer, Collector]:
    col = Collector()
    buf = InputBuffer(col.on_data, col.on_paste, timeout=timeout)
    return buf, col


# ---------------------------------------------------------------------------
# sequence_status
# ---------------------------------------------------------------------------


class TestSequenceStatus:
    @pytest.mark.parametrize(
        "data",
        ["\x1b[A", "\x1b[1;5A", "\x1b[3~", "\x1bOP", "\x1ba", "\x1b]0;title\x07", "\x1bPq\x1b\\", "\x1b[<0;10;5M"],
    )
    def test_complete(self, data: str) -> None:
        assert sequence_status(data) == "complete"

    @pytest.mark.parametrize("data", ["\x1b", "\x1b[", "\x1b[1;", "\x1bO", "\x1b]0;title", "\x1b[<0;10"])
    def test_incomplete(self, data: str) -> None:
        assert sequence_status(data) == "incomplete"

    def test_plain_text(self) -> None:
        assert sequence_status("abc") == "not-escape"

    def test_x10_mouse_needs_three_bytes(self) -> None:
        assert sequence_status("\x1b[M ") == "incomplete"
        assert sequence_status("\x1b[M !!") == "complete"


# ---------------------------------------------------------------------------
# split_sequences
# ---------------------------------------------------------------------------


class TestSplitSequences:
    def test_characters_and_sequences(self) -> None:
        assert split_sequences("ab\x1b[Ac") == (["a", "b", "\x1b[A", "c"], "")

    def test_partial_sequence_is_held_back(self) -> None:
        assert split_sequences("a\x1b[1;") == (["a"], "\x1b[1;")

    def test_back_to_back_sequences(self) -> None:
        assert split_sequences("\x1b[A\x1b[B") == (["\x1b[A", "\x1b[B"], "")

    def test_empty(self) -> None:
        assert split_sequences("") == ([], "")


# ---------------------------------------------------------------------------
# InputBuffer
# ---------------------------------------------------------------------------


class TestInputBuffer:
    def test_emits_each_key(self) -> None:
        buf, col = make_buffer()
        buf.feed("hi\r")
        assert col.data == ["h", "i", "\r"]

    def test_without_a_loop_a_prefix_flushes_at_once(self) -> None:
        buf, col = make_buffer()
        buf.feed("\x1b")
        assert col.data == ["\x1b"]
        assert buf.pending == ""

    @pytest.mark.asyncio
    async def test_sequence_split_across_reads(self) -> None:
        buf, col = make_buffer()
        buf.feed("\x1b[")
        assert col.data == []
        assert buf.pending == "\x1b["
        buf.feed("A")
        assert col.data == ["\x1b[A"]

    @pytest.mark.asyncio
    async def test_lone_escape_flushes_after_timeout(self) -> None:
        buf, col = make_buffer(timeout=0.01)
        buf.feed("\x1b")
        assert col.data == []
        await asyncio.sleep(0.05)
        assert col.data == ["\x1b"]

    @pytest.mark.asyncio
    async def test_more_input_cancels_the_timeout(self) -> None:
        buf, col = make_buffer(timeout=0.01)
        buf.feed("\x1b")
        buf.feed("[B")
        await asyncio.sleep(0.05)
        assert col.data == ["\x1b[B"]

    def test_flush_returns_pending(self) -> None:
        buf, _ = make_buffer()
        buf._pending = "\x1b["
        assert buf.flush() == ["\x1b["]
        assert buf.flush() == []

    def test_clear(self) -> None:
        buf, col = make_buffer()
        buf.feed(BRACKETED_PASTE_START + "half")
        buf.clear()
        assert not buf.in_paste
        buf.feed("x")
        assert col.data == ["x"]
        assert col.pastes == []


class TestPaste:
    def test_paste_in_one_chunk(self) -> None:
        buf, col = make_buffer()
        buf.feed("x" + BRACKETED_PASTE_START + "hello" + BRACKETED_PASTE_END + "y")
        assert col.data == ["x", "y"]
        assert col.pastes == ["hello"]

    def test_paste_across_chunks(self) -> None:
        buf, col = make_buffer()
        buf.feed(BRACKETED_PASTE_START + "hel")
        assert buf.in_paste
        assert col.pastes == []
        buf.feed("lo\x1b[A" + BRACKETED_PASTE_END)
        assert not buf.in_paste
        assert col.pastes == ["hello\x1b[A"]
        assert col.data == []

    def test_paste_without_paste_handler_is_wrapped(self) -> None:
        data: list[str] = []
        buf = InputBuffer(data.append)
        buf.feed(BRACKETED_PASTE_START + "abc" + BRACKETED_PASTE_END)
        assert data == [BRACKETED_PASTE_START + "abc" + BRACKETED_PASTE_END]
