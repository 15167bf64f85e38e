"""Terminal abstraction for raw-mode prompt sessions.

:class:`Terminal` is the contract the prompt engine needs from its device:
ordered raw input delivered to a callback, a resize notification, text
output and the current size.  :class:`ProcessTerminal` implements it on top
of the process's stdin/stdout with :mod:`termios` raw mode, bracketed paste
and ``SIGWINCH``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import termios
from typing import Callable, Protocol, TextIO

from pi.prompts.keys import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from pi.prompts.stdin_buffer import InputBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
BRACKETED_PASTE_DISABLE = "\x1b[?2004l"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 24


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O used by prompts."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by real file descriptors (``sys.stdin``/``sys.stdout`` by default).

    Input is only read while started; between prompts the device is left in
    its original (cooked) mode.  Writes are not retried and ``OSError`` from
    the output stream propagates to the caller.
    """

    def __init__(
        self,
        input: TextIO | None = None,
        output: TextIO | None = None,
    ) -> None:
        self._input = input if input is not None else sys.stdin
        self._output = output if output is not None else sys.stdout
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._buffer: InputBuffer | None = None
        self._original_termios: list | None = None
        self._watching_resize = False
        self._reader_fd: int | None = None

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._output.fileno()).columns or DEFAULT_COLUMNS
        except (ValueError, OSError, AttributeError):
            return DEFAULT_COLUMNS

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._output.fileno()).lines or DEFAULT_ROWS
        except (ValueError, OSError, AttributeError):
            return DEFAULT_ROWS

    @property
    def is_tty(self) -> bool:
        try:
            return os.isatty(self._input.fileno())
        except (ValueError, OSError, AttributeError):
            return False

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enter raw mode and begin delivering input to *on_input*."""
        self._input_handler = on_input
        self._resize_handler = on_resize
        self._buffer = InputBuffer(self._deliver, self._deliver_paste)

        loop = asyncio.get_running_loop()
        if hasattr(signal, "SIGWINCH"):
            loop.add_signal_handler(signal.SIGWINCH, self._on_sigwinch)
            self._watching_resize = True

        # Piped or redirected input is never read: prompts there can only be
        # resolved programmatically (spinners, progress) or cancelled.
        if not self.is_tty:
            logger.debug("terminal started without a tty on stdin")
            return

        fd = self._input.fileno()
        self._original_termios = termios.tcgetattr(fd)
        _set_raw(fd)
        self.write(BRACKETED_PASTE_ENABLE)
        loop.add_reader(fd, self._on_readable)
        self._reader_fd = fd
        logger.debug("terminal started in raw mode (fd=%d)", fd)

    def stop(self) -> None:
        """Leave raw mode and detach all handlers.  Safe to call twice."""
        if self._reader_fd is not None or self._watching_resize:
            loop = asyncio.get_running_loop()
            if self._reader_fd is not None:
                loop.remove_reader(self._reader_fd)
                self._reader_fd = None
            if self._watching_resize:
                loop.remove_signal_handler(signal.SIGWINCH)
                self._watching_resize = False

        if self._buffer is not None:
            self._buffer.clear()
            self._buffer = None

        if self._original_termios is not None:
            try:
                self.write(BRACKETED_PASTE_DISABLE)
            finally:
                termios.tcsetattr(
                    self._input.fileno(), termios.TCSADRAIN, self._original_termios
                )
                self._original_termios = None

        self._input_handler = None
        self._resize_handler = None

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        self._output.write(data)
        self._output.flush()

    def hide_cursor(self) -> None:
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(SHOW_CURSOR)

    # -- private ------------------------------------------------------------

    def _on_readable(self) -> None:
        try:
            raw = os.read(self._input.fileno(), 4096)
        except BlockingIOError:
            return
        if not raw or self._buffer is None:
            return
        self._buffer.feed(raw.decode("utf-8", errors="replace"))

    def _deliver(self, data: str) -> None:
        if self._input_handler is not None:
            self._input_handler(data)

    def _deliver_paste(self, data: str) -> None:
        self._deliver(BRACKETED_PASTE_START + data + BRACKETED_PASTE_END)

    def _on_sigwinch(self) -> None:
        if self._resize_handler is not None:
            self._resize_handler()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _set_raw(fd: int) -> None:
    """Raw input with output post-processing left on.

    Keeping ``OPOST``/``ONLCR`` lets frames use plain ``\\n`` line breaks;
    ``ISIG`` is off so ctrl+c arrives as a key instead of a signal.
    """
    attrs = termios.tcgetattr(fd)
    attrs[0] &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON)
    attrs[1] |= termios.OPOST | termios.ONLCR
    attrs[2] |= termios.CS8
    attrs[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
    attrs[6][termios.VMIN] = 1
    attrs[6][termios.VTIME] = 0
    termios.tcsetattr(fd, termios.TCSAFLUSH, attrs)
