"""Split raw stdin chunks into complete key sequences.

Terminal reads can end in the middle of an escape sequence (``ESC [ 1 ;``),
and a lone ESC is indistinguishable from the start of one until a short
timeout passes.  :class:`InputBuffer` holds partial sequences back, flushes a
dangling prefix after ``timeout`` seconds, and collects bracketed paste
content into a single paste event.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Callable, Literal

from pi.prompts.keys import BRACKETED_PASTE_END, BRACKETED_PASTE_START, ESC

logger = logging.getLogger(__name__)

SequenceStatus = Literal["complete", "incomplete", "not-escape"]

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")

# Sequences terminated by ST (ESC \) or, for OSC, BEL
_STRING_INTRODUCERS = {"]": True, "P": False, "_": False}


def sequence_status(data: str) -> SequenceStatus:
    """Classify *data* as a complete escape sequence, a prefix of one, or plain input."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    kind = data[1]

    if kind == "[":
        if data.startswith("\x1b[M"):
            # X10 mouse: ESC [ M + three bytes
            return "complete" if len(data) >= 6 else "incomplete"
        if len(data) < 3:
            return "incomplete"
        payload = data[2:]
        if not 0x40 <= ord(payload[-1]) <= 0x7E:
            return "incomplete"
        if payload.startswith("<"):
            return "complete" if _SGR_MOUSE_RE.match(payload) else "incomplete"
        return "complete"

    if kind in _STRING_INTRODUCERS:
        if data.endswith("\x1b\\"):
            return "complete"
        if _STRING_INTRODUCERS[kind] and data.endswith("\x07"):
            return "complete"
        return "incomplete"

    if kind == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # ESC + one character is a meta keypress
    return "complete"


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences plus an unfinished remainder."""
    sequences: list[str] = []
    pos = 0
    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while True:
            if end > len(buffer):
                return sequences, buffer[pos:]
            status = sequence_status(buffer[pos:end])
            if status != "incomplete":
                break
            end += 1

        sequences.append(buffer[pos:end])
        pos = end
    return sequences, ""


class InputBuffer:
    """Buffer raw input and emit complete sequences and paste blocks."""

    def __init__(
        self,
        on_data: Callable[[str], None],
        on_paste: Callable[[str], None] | None = None,
        *,
        timeout: float = 0.01,
    ) -> None:
        self._on_data = on_data
        self._on_paste = on_paste
        self.timeout = timeout
        self._pending = ""
        self._paste: str | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> str:
        return self._pending

    @property
    def in_paste(self) -> bool:
        return self._paste is not None

    def feed(self, data: str) -> None:
        """Feed a raw chunk read from the terminal."""
        self._cancel_timer()

        if self._paste is not None:
            self._paste += data
            self._finish_paste()
            return

        self._pending += data
        start = self._pending.find(BRACKETED_PASTE_START)
        if start != -1:
            before = self._pending[:start]
            self._paste = self._pending[start + len(BRACKETED_PASTE_START) :]
            self._pending = ""
            self._emit_all(split_sequences(before)[0])
            self._finish_paste()
            return

        sequences, self._pending = split_sequences(self._pending)
        self._emit_all(sequences)

        if self._pending:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self._emit_all(self.flush())
                return
            self._timer = loop.call_later(self.timeout, self._on_timeout)

    def _finish_paste(self) -> None:
        assert self._paste is not None
        end = self._paste.find(BRACKETED_PASTE_END)
        if end == -1:
            return
        content, rest = self._paste[:end], self._paste[end + len(BRACKETED_PASTE_END) :]
        self._paste = None
        logger.debug("paste of %d characters", len(content))
        if self._on_paste is not None:
            self._on_paste(content)
        else:
            self._on_data(BRACKETED_PASTE_START + content + BRACKETED_PASTE_END)
        if rest:
            self.feed(rest)

    def _emit_all(self, sequences: list[str]) -> None:
        for seq in sequences:
            self._on_data(seq)

    def _on_timeout(self) -> None:
        self._timer = None
        self._emit_all(self.flush())

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def flush(self) -> list[str]:
        """Give up waiting and return whatever is pending as one sequence."""
        self._cancel_timer()
        if not self._pending:
            return []
        flushed, self._pending = [self._pending], ""
        return flushed

    def clear(self) -> None:
        self._cancel_timer()
        self._pending = ""
        self._paste = None
