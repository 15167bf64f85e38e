"""Terminal text utilities: ANSI handling, width measurement and wrapping.

Everything here works in terminal *columns*, not characters: ANSI escape
sequences take no space, wide (CJK, emoji) graphemes take two columns and
combining marks take none.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterator

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# ANSI patterns
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?]*[A-Za-z]"  # CSI
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"  # OSC
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"  # APC
)
_TOKEN_RE = re.compile(_STRIP_RE.pattern)

RESET = "\x1b[0m"

# ---------------------------------------------------------------------------
# Width measurement
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _grapheme_width(g: str) -> int:
    """Return the column width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ sequences, skin tones and flags render as emoji
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000:
        return 2
    if unicodedata.category(first) in ("Mn", "Me", "Mc", "Cf"):
        return 0
    return max(_wcwidth.wcwidth(first), 0)


def strip_ansi(text: str) -> str:
    return _STRIP_RE.sub("", text)


def visible_width(text: str) -> int:
    """Column width of *text* once ANSI sequences are removed.

    Tabs count as three columns.
    """
    if not text:
        return 0

    stripped = strip_ansi(text).replace("\t", "   ")
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = total
    return total


def _tokens(text: str) -> Iterator[tuple[str, bool]]:
    """Yield ``(piece, is_ansi)`` pairs; visible text comes out one grapheme at a time."""
    pos = 0
    for m in _TOKEN_RE.finditer(text):
        if m.start() > pos:
            for g in grapheme.graphemes(text[pos : m.start()]):
                yield g, False
        yield m.group(0), True
        pos = m.end()
    if pos < len(text):
        for g in grapheme.graphemes(text[pos:]):
            yield g, False


# ---------------------------------------------------------------------------
# SGR state
# ---------------------------------------------------------------------------


class SgrState:
    """Track the SGR codes in effect so they can be re-opened after a break.

    Codes are replayed in arrival order, so a closing code (``22``, ``39``...)
    cancels its opener without having to model each attribute.
    """

    def __init__(self) -> None:
        self.codes: list[str] = []

    def process(self, code: str) -> None:
        if not code.startswith("\x1b[") or not code.endswith("m"):
            return
        params = code[2:-1]
        if params in ("", "0"):
            self.codes.clear()
        else:
            self.codes.append(code)

    @property
    def active(self) -> bool:
        return bool(self.codes)

    def prefix(self) -> str:
        return "".join(self.codes)


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------


def wrap_ansi(text: str, width: int, *, hard: bool = False) -> list[str]:
    """Wrap *text* to *width* columns, preserving ANSI styling across breaks.

    With ``hard=True`` lines are cut exactly at the column limit, which is
    how the terminal itself folds an over-long line.  Otherwise breaks fall
    after the last space where possible.  Embedded newlines always break.
    """
    if width <= 0:
        return text.split("\n")

    state = SgrState()
    result: list[str] = []
    for physical in text.split("\n"):
        result.extend(_wrap_line(physical, width, state, hard))
    return result


def _wrap_line(line: str, width: int, state: SgrState, hard: bool) -> list[str]:
    if not line:
        return [""]

    lines: list[str] = []
    parts: list[tuple[str, int]] = []
    if state.active:
        parts.append((state.prefix(), 0))
    cols = 0
    # parts index just after the last space, with the SGR state at that point
    space_at = -1
    space_state: list[str] = []

    def close(chunk: list[tuple[str, int]], active: bool) -> str:
        body = "".join(p for p, _ in chunk)
        return body + RESET if active else body

    for piece, is_ansi in _tokens(line):
        if is_ansi:
            state.process(piece)
            parts.append((piece, 0))
            continue

        if piece == "\t":
            piece = "   "
        w = visible_width(piece) if len(piece) > 1 else _grapheme_width(piece)

        if cols + w > width and cols > 0:
            if not hard and space_at > 0 and piece != " ":
                head, tail = parts[:space_at], parts[space_at:]
                lines.append(close(head, bool(space_state)).rstrip(" "))
                parts = [("".join(space_state), 0)] if space_state else []
                parts.extend(tail)
                cols = sum(pw for _, pw in tail)
            else:
                lines.append(close(parts, state.active))
                parts = [(state.prefix(), 0)] if state.active else []
                cols = 0
                if piece == " " and not hard:
                    space_at = -1
                    continue
            space_at = -1

        parts.append((piece, w))
        cols += w
        if piece == " ":
            space_at = len(parts)
            space_state = list(state.codes)

    lines.append(close(parts, state.active))
    return lines


def truncate_to_width(text: str, max_width: int, ellipsis: str = "...") -> str:
    """Cut *text* to at most *max_width* columns, ending with *ellipsis* if cut."""
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return _take_columns(ellipsis, max_width)
    taken = _take_columns(text, target)
    return taken + (RESET if "\x1b[" in taken else "") + ellipsis


def _take_columns(text: str, max_cols: int) -> str:
    out: list[str] = []
    cols = 0
    for piece, is_ansi in _tokens(text):
        if is_ansi:
            out.append(piece)
            continue
        w = _grapheme_width(piece)
        if cols + w > max_cols:
            break
        out.append(piece)
        cols += w
    return "".join(out)


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with spaces to *width* columns."""
    return text + " " * max(0, width - visible_width(text))
