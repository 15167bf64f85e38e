"""Key decoding for raw terminal input.

Turns one complete input sequence (as split by :class:`InputBuffer`) into a
:class:`KeyEvent`.  Understands legacy xterm/VT sequences, modifier-encoded
CSI sequences (``ESC[1;5A``), SS3 function keys, the kitty keyboard protocol
(``CSI u``), xterm's modifyOtherKeys format and bracketed paste.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

KeyId = str
KeyEventType = Literal["press", "repeat", "release"]


@dataclass(frozen=True)
class KeyEvent:
    """One decoded keypress.

    ``char`` is the text the key would insert (empty for non-printing keys),
    ``name`` the symbolic key name (``"a"``, ``"return"``, ``"up"``...).
    ``meta`` covers both Alt and an ESC prefix.
    """

    char: str = ""
    name: str = ""
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    sequence: str = ""
    kind: KeyEventType = "press"

    @property
    def key_id(self) -> KeyId:
        """The ``ctrl+shift+alt+name`` form used by key bindings."""
        prefix = ""
        if self.ctrl:
            prefix += "ctrl+"
        if self.shift:
            prefix += "shift+"
        if self.meta:
            prefix += "alt+"
        return prefix + self.name

    @property
    def is_printable(self) -> bool:
        return bool(self.char) and not self.ctrl and not self.meta

    @property
    def is_paste(self) -> bool:
        return self.name == "paste"


class Key:
    """Symbolic key names produced by :func:`decode_key`."""

    escape = "escape"
    enter = "return"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    clear = "clear"
    home = "home"
    end = "end"
    page_up = "pageup"
    page_down = "pagedown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"
    paste = "paste"

    @staticmethod
    def ctrl(key: str) -> KeyId:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> KeyId:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> KeyId:
        return f"alt+{key}"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

# Caps lock / num lock bits reported by kitty; never part of a binding
LOCK_MASK = 64 + 128

# Final byte of ``CSI [1;mod] X`` and ``SS3 [mod] X`` sequences
CSI_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "E": "clear",
    "F": "end",
    "H": "home",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

# Leading number of ``CSI n [;mod] ~`` sequences
CSI_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageup",
    6: "pagedown",
    7: "home",
    8: "end",
    11: "f1",
    12: "f2",
    13: "f3",
    14: "f4",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

# Kitty protocol codepoints with a symbolic name
KITTY_CODEPOINT_KEYS: dict[int, str] = {
    9: "tab",
    13: "return",
    27: "escape",
    32: "space",
    127: "backspace",
    57414: "return",  # keypad enter
    **{57364 + i: f"f{i + 1}" for i in range(12)},
}

_CSI_U_RE = re.compile(r"^\x1b\[(\d+)(?::\d*)*(?:;(\d+)(?::(\d+))?)?(?:;[\d:]*)?u$")
_CSI_LETTER_RE = re.compile(r"^\x1b\[(?:1;)?(\d+)?(?::(\d+))?([A-HPQRSZ])$")
_CSI_TILDE_RE = re.compile(r"^\x1b\[(\d+)(?:;(\d+)(?::(\d+))?)?~$")
_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")
_SS3_RE = re.compile(r"^\x1bO(\d)?([A-HPQRS])$")

_EVENT_TYPES: dict[int, KeyEventType] = {1: "press", 2: "repeat", 3: "release"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _modifier_flags(raw: int | None) -> tuple[bool, bool, bool]:
    """Split an xterm modifier parameter (``1 + bits``) into (ctrl, meta, shift)."""
    if not raw:
        return False, False, False
    bits = (raw - 1) & ~LOCK_MASK
    return (
        bool(bits & MODIFIERS["ctrl"]),
        bool(bits & MODIFIERS["alt"]),
        bool(bits & MODIFIERS["shift"]),
    )


def _event_type(raw: str | None) -> KeyEventType:
    if not raw:
        return "press"
    return _EVENT_TYPES.get(int(raw), "press")


def _from_codepoint(
    codepoint: int, modifier: int | None, kind: KeyEventType, sequence: str
) -> KeyEvent:
    ctrl, meta, shift = _modifier_flags(modifier)
    named = KITTY_CODEPOINT_KEYS.get(codepoint)
    if named is not None:
        char = " " if named == "space" and not (ctrl or meta) else ""
        return KeyEvent(char, named, ctrl, meta, shift, sequence, kind)

    if codepoint <= 0 or codepoint > 0x10FFFF:
        return KeyEvent("", "", ctrl, meta, shift, sequence, kind)

    ch = chr(codepoint)
    if not ch.isprintable():
        return KeyEvent("", "", ctrl, meta, shift, sequence, kind)

    char = ch.upper() if shift and ch.isalpha() else ch
    return KeyEvent(
        "" if (ctrl or meta) else char,
        ch.lower(),
        ctrl,
        meta,
        shift,
        sequence,
        kind,
    )


def _decode_escape(data: str) -> KeyEvent | None:
    """Decode a sequence that starts with ESC, or ``None`` if unrecognised."""
    m = _MODIFY_OTHER_KEYS_RE.match(data)
    if m:
        return _from_codepoint(int(m.group(2)), int(m.group(1)), "press", data)

    m = _CSI_U_RE.match(data)
    if m:
        modifier = int(m.group(2)) if m.group(2) else None
        return _from_codepoint(int(m.group(1)), modifier, _event_type(m.group(3)), data)

    m = _CSI_LETTER_RE.match(data)
    if m:
        letter = m.group(3)
        modifier = int(m.group(1)) if m.group(1) else None
        kind = _event_type(m.group(2))
        if letter == "Z":
            return KeyEvent("", "tab", shift=True, sequence=data, kind=kind)
        name = CSI_LETTER_KEYS.get(letter)
        if name is None:
            return None
        ctrl, meta, shift = _modifier_flags(modifier)
        return KeyEvent("", name, ctrl, meta, shift, data, kind)

    m = _CSI_TILDE_RE.match(data)
    if m:
        name = CSI_TILDE_KEYS.get(int(m.group(1)))
        if name is None:
            return None
        modifier = int(m.group(2)) if m.group(2) else None
        ctrl, meta, shift = _modifier_flags(modifier)
        return KeyEvent("", name, ctrl, meta, shift, data, _event_type(m.group(3)))

    m = _SS3_RE.match(data)
    if m:
        name = CSI_LETTER_KEYS.get(m.group(2))
        if name is None:
            return None
        modifier = int(m.group(1)) if m.group(1) else None
        ctrl, meta, shift = _modifier_flags(modifier)
        return KeyEvent("", name, ctrl, meta, shift, data)

    # Meta + key: ESC followed by exactly one character
    if len(data) == 2:
        inner = _decode_single(data[1])
        return KeyEvent(
            "",
            inner.name,
            inner.ctrl,
            True,
            inner.shift,
            data,
        )

    return None


def _decode_single(ch: str) -> KeyEvent:
    """Decode a single-character input."""
    if ch in ("\r", "\n"):
        return KeyEvent("", "return", sequence=ch)
    if ch == "\t":
        return KeyEvent("", "tab", sequence=ch)
    if ch in ("\x7f", "\x08"):
        return KeyEvent("", "backspace", sequence=ch)
    if ch == ESC:
        return KeyEvent("", "escape", sequence=ch)
    if ch == " ":
        return KeyEvent(" ", "space", sequence=ch)
    if ch == "\x00":
        return KeyEvent("", "space", ctrl=True, sequence=ch)

    code = ord(ch)
    if 1 <= code <= 26:
        return KeyEvent("", chr(code + ord("a") - 1), ctrl=True, sequence=ch)
    if 27 < code < 32:
        return KeyEvent("", chr(code + 64).lower(), ctrl=True, sequence=ch)

    if ch.isprintable():
        shift = ch.isalpha() and ch.isupper()
        return KeyEvent(ch, ch.lower() if ch.isalpha() else ch, shift=shift, sequence=ch)

    return KeyEvent("", "", sequence=ch)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decode_key(data: str) -> KeyEvent:
    """Decode one complete input sequence into a :class:`KeyEvent`.

    Unknown escape sequences decode to an event with an empty ``name`` so the
    caller can ignore them without losing ordering.
    """
    if not data:
        return KeyEvent()

    if data.startswith(BRACKETED_PASTE_START):
        body = data[len(BRACKETED_PASTE_START) :]
        if body.endswith(BRACKETED_PASTE_END):
            body = body[: -len(BRACKETED_PASTE_END)]
        return KeyEvent(body, "paste", sequence=data)

    if len(data) == 1:
        return _decode_single(data)

    if data.startswith(ESC):
        decoded = _decode_escape(data)
        if decoded is not None:
            return decoded
        return KeyEvent("", "", sequence=data)

    # A multi-character chunk with no escape prefix (e.g. IME commit).
    return KeyEvent(data, "", sequence=data)
