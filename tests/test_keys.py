"""Tests for pi.prompts.keys -- decoding raw input into key events."""

from __future__ import annotations

import pytest

from pi.prompts.keys import (
    BRACKETED_PASTE_END,
    BRACKETED_PASTE_START,
    Key,
    KeyEvent,
    decode_key,
)


# ---------------------------------------------------------------------------
# Key helper class
# ---------------------------------------------------------------------------


class TestKeyHelper:
    def test_modifier_builders(self) -> None:
        assert Key.ctrl("c") == "ctrl+c"
        assert Key.shift("tab") == "shift+tab"
        assert Key.alt("b") == "alt+b"

    def test_enter_is_return(self) -> None:
        assert Key.enter == "return"


class TestKeyEvent:
    def test_key_id_orders_modifiers(self) -> None:
        event = KeyEvent("", "up", ctrl=True, meta=True, shift=True)
        assert event.key_id == "ctrl+shift+alt+up"

    def test_printable_requires_char_without_modifiers(self) -> None:
        assert KeyEvent("a", "a").is_printable
        assert not KeyEvent("", "a", ctrl=True).is_printable
        assert not KeyEvent("", "up").is_printable


# ---------------------------------------------------------------------------
# Single characters
# ---------------------------------------------------------------------------


class TestSingleCharacters:
    def test_letter(self) -> None:
        event = decode_key("a")
        assert event.char == "a"
        assert event.name == "a"
        assert not event.shift

    def test_uppercase_sets_shift(self) -> None:
        event = decode_key("A")
        assert event.char == "A"
        assert event.name == "a"
        assert event.shift

    @pytest.mark.parametrize("data", ["\r", "\n"])
    def test_return(self, data: str) -> None:
        assert decode_key(data).name == "return"

    @pytest.mark.parametrize("data", ["\x7f", "\x08"])
    def test_backspace(self, data: str) -> None:
        assert decode_key(data).name == "backspace"

    def test_tab(self) -> None:
        assert decode_key("\t").key_id == "tab"

    def test_space_inserts_a_space(self) -> None:
        event = decode_key(" ")
        assert event.name == "space"
        assert event.char == " "

    def test_escape(self) -> None:
        assert decode_key("\x1b").key_id == "escape"

    def test_ctrl_letter(self) -> None:
        event = decode_key("\x03")
        assert event.key_id == "ctrl+c"
        assert event.char == ""

    def test_ctrl_space(self) -> None:
        assert decode_key("\x00").key_id == "ctrl+space"

    def test_digit_and_punctuation(self) -> None:
        assert decode_key("7").char == "7"
        assert decode_key("/").name == "/"

    def test_multi_character_chunk_is_text(self) -> None:
        event = decode_key("日本")
        assert event.char == "日本"
        assert event.name == ""

    def test_empty_input(self) -> None:
        assert decode_key("") == KeyEvent()


# ---------------------------------------------------------------------------
# Escape sequences
# ---------------------------------------------------------------------------


class TestEscapeSequences:
    @pytest.mark.parametrize(
        "data,name",
        [
            ("\x1b[A", "up"),
            ("\x1b[B", "down"),
            ("\x1b[C", "right"),
            ("\x1b[D", "left"),
            ("\x1b[H", "home"),
            ("\x1b[F", "end"),
            ("\x1bOA", "up"),
            ("\x1b[3~", "delete"),
            ("\x1b[5~", "pageup"),
            ("\x1b[6~", "pagedown"),
            ("\x1b[1~", "home"),
            ("\x1b[4~", "end"),
        ],
    )
    def test_named_keys(self, data: str, name: str) -> None:
        event = decode_key(data)
        assert event.name == name
        assert event.char == ""

    @pytest.mark.parametrize(
        "data,name",
        [("\x1bOP", "f1"), ("\x1bOS", "f4"), ("\x1b[15~", "f5"), ("\x1b[24~", "f12")],
    )
    def test_function_keys(self, data: str, name: str) -> None:
        assert decode_key(data).name == name

    def test_ctrl_arrow(self) -> None:
        assert decode_key("\x1b[1;5A").key_id == "ctrl+up"

    def test_shift_alt_arrow(self) -> None:
        assert decode_key("\x1b[1;4D").key_id == "shift+alt+left"

    def test_modified_tilde_key(self) -> None:
        assert decode_key("\x1b[3;5~").key_id == "ctrl+delete"

    def test_shift_tab(self) -> None:
        assert decode_key("\x1b[Z").key_id == "shift+tab"

    def test_meta_prefix(self) -> None:
        event = decode_key("\x1bb")
        assert event.key_id == "alt+b"
        assert event.char == ""

    def test_meta_backspace(self) -> None:
        assert decode_key("\x1b\x7f").key_id == "alt+backspace"

    def test_unknown_sequence_has_no_name(self) -> None:
        event = decode_key("\x1b[50~")
        assert event.name == ""
        assert event.sequence == "\x1b[50~"


class TestKittyProtocol:
    def test_plain_letter(self) -> None:
        event = decode_key("\x1b[97u")
        assert event.char == "a"
        assert event.name == "a"

    def test_ctrl_letter(self) -> None:
        event = decode_key("\x1b[97;5u")
        assert event.key_id == "ctrl+a"
        assert event.char == ""

    def test_shifted_letter(self) -> None:
        event = decode_key("\x1b[97;2u")
        assert event.char == "A"
        assert event.shift

    def test_named_codepoint(self) -> None:
        assert decode_key("\x1b[13u").name == "return"
        assert decode_key("\x1b[27u").name == "escape"

    def test_lock_bits_are_ignored(self) -> None:
        # 1 + ctrl(4) + caps lock(64)
        assert decode_key("\x1b[97;69u").key_id == "ctrl+a"

    def test_release_event(self) -> None:
        event = decode_key("\x1b[97;1:3u")
        assert event.kind == "release"

    def test_repeat_event(self) -> None:
        assert decode_key("\x1b[97;1:2u").kind == "repeat"

    def test_press_is_not_release(self) -> None:
        assert decode_key("a").kind == "press"


class TestModifyOtherKeys:
    def test_ctrl_return(self) -> None:
        assert decode_key("\x1b[27;5;13~").key_id == "ctrl+return"

    def test_ctrl_letter(self) -> None:
        assert decode_key("\x1b[27;5;99~").key_id == "ctrl+c"


# ---------------------------------------------------------------------------
# Paste
# ---------------------------------------------------------------------------


class TestPaste:
    def test_paste_carries_text(self) -> None:
        event = decode_key(BRACKETED_PASTE_START + "hi\nthere" + BRACKETED_PASTE_END)
        assert event.is_paste
        assert event.char == "hi\nthere"

    def test_paste_is_never_a_release(self) -> None:
        event = decode_key(BRACKETED_PASTE_START + "\x1b[97;1:3u" + BRACKETED_PASTE_END)
        assert event.is_paste
        assert event.kind == "press"
