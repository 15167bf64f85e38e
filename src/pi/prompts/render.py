"""Differential repaint of a prompt's terminal region.

The renderer owns the block of rows a prompt has painted below the shell
cursor.  Each :meth:`FrameRenderer.render` call compares the new frame with
the last painted one (after folding both to the live column count), moves
the cursor up to the first row that differs, clears downward and writes the
remainder.  Identical frames at an unchanged width produce no output.
"""

from __future__ import annotations

import logging

from pi.prompts.terminal import Terminal
from pi.prompts.utils import wrap_ansi

logger = logging.getLogger(__name__)

CLEAR_DOWN = "\x1b[J"


def cursor_up(n: int) -> str:
    return f"\x1b[{n}A" if n > 0 else ""


def fold(lines: list[str], width: int) -> list[str]:
    """Fold logical lines into the physical rows the terminal will show."""
    rows: list[str] = []
    for line in lines:
        rows.extend(wrap_ansi(line, width, hard=True))
    return rows


class FrameRenderer:
    """Paint successive frames of one prompt onto a :class:`Terminal`.

    Invariant: after every paint the cursor rests at the end of the last
    painted row, so the region top is ``len(rows) - 1`` rows above it.
    """

    def __init__(self, terminal: Terminal) -> None:
        self._terminal = terminal
        self._lines: list[str] = []
        self._rows: list[str] = []
        self._width = 0
        self._painted = False

    @property
    def frame(self) -> str:
        """The last painted frame."""
        return "\n".join(self._lines)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def render(self, frame: str, *, force: bool = False) -> bool:
        """Bring the painted region in line with *frame*.

        Returns ``True`` if anything was written.
        """
        width = self._terminal.columns
        lines = frame.split("\n")
        if self._painted and not force and lines == self._lines and width == self._width:
            return False

        rows = fold(lines, width)

        if not self._painted:
            out = "\n".join(rows)
        else:
            if force or width != self._width:
                # The terminal reflows what we painted to the new width, so the
                # old region spans the old lines folded at that width.
                first = 0
                old_count = len(fold(self._lines, width))
            else:
                first = _first_difference(self._rows, rows)
                old_count = len(self._rows)
                if first == len(rows) == old_count:
                    self._lines = lines
                    return False
            # Always rewrite at least one row so the cursor ends on the new last row
            first = min(first, old_count - 1, len(rows) - 1)
            out = cursor_up(old_count - 1 - first) + "\r" + CLEAR_DOWN + "\n".join(rows[first:])

        self._terminal.write(out)
        self._lines = lines
        self._rows = rows
        self._width = width
        self._painted = True
        return True

    def on_resize(self) -> None:
        """Repaint the last frame at the terminal's new width."""
        if not self._painted:
            return
        logger.debug("resize repaint at %d columns", self._terminal.columns)
        self.render(self.frame, force=True)

    def clear(self) -> None:
        """Erase the painted region, leaving the cursor at its top-left."""
        if not self._painted:
            return
        self._terminal.write(cursor_up(len(self._rows) - 1) + "\r" + CLEAR_DOWN)
        self._reset()

    def finish(self) -> None:
        """Release the region: move below it so later output does not overwrite it."""
        if self._painted:
            self._terminal.write("\n")
        self._reset()

    def _reset(self) -> None:
        self._lines = []
        self._rows = []
        self._width = 0
        self._painted = False


def _first_difference(old: list[str], new: list[str]) -> int:
    for i, (a, b) in enumerate(zip(old, new)):
        if a != b:
            return i
    return min(len(old), len(new))
