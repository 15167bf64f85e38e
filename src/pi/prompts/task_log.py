"""A live, bounded log under a title that collapses when the work succeeds."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from pi.prompts.render import FrameRenderer
from pi.prompts.settings import PromptSettings, get_settings
from pi.prompts.terminal import ProcessTerminal, Terminal
from pi.prompts.theme import Theme

logger = logging.getLogger(__name__)

Status = Literal["success", "error"]


@dataclass
class _Buffer:
    header: str | None = None
    # Lines currently shown
    lines: list[str] = field(default_factory=list)
    # Lines scrolled out of view, kept only with retain_log
    scrolled: list[str] = field(default_factory=list)
    last_raw: bool = False
    result: tuple[Status, str] | None = None


class TaskLog:
    """Append-only log whose visible part is limited to the last *limit* lines.

    ``success`` replaces the log with a one-line summary unless
    ``show_log=True``; ``error`` keeps the log on screen by default.
    """

    def __init__(
        self,
        title: str,
        *,
        limit: int | None = None,
        retain_log: bool = False,
        spacing: int = 1,
        settings: PromptSettings | None = None,
        terminal: Terminal | None = None,
    ) -> None:
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        self.title = title
        self.limit = limit
        self.retain_log = retain_log
        self.spacing = spacing
        self.theme = Theme(settings if settings is not None else get_settings())
        self.terminal: Terminal = terminal if terminal is not None else ProcessTerminal()
        self._renderer = FrameRenderer(self.terminal)
        self._buffers = [_Buffer()]
        self._completed: tuple[Status, str, bool] | None = None
        self._update()

    @property
    def done(self) -> bool:
        return self._completed is not None

    def _buffer(self, name: str | None) -> _Buffer | None:
        if name is None:
            return self._buffers[0]
        for buffer in self._buffers:
            if buffer.header == name:
                return buffer
        return None

    # -- writing -----------------------------------------------------------------

    def message(self, text: str, *, raw: bool = False, group: str | None = None) -> None:
        """Append *text*.  Raw messages continue the previous raw message's line."""
        buffer = self._buffer(group)
        if buffer is None or self.done:
            return
        parts = text.split("\n")
        if raw and buffer.last_raw and buffer.lines:
            buffer.lines[-1] += parts[0]
            parts = parts[1:]
        buffer.lines.extend(parts)
        buffer.last_raw = raw
        if self.limit is not None and len(buffer.lines) > self.limit:
            cut = len(buffer.lines) - self.limit
            if self.retain_log:
                buffer.scrolled.extend(buffer.lines[:cut])
            del buffer.lines[:cut]
        self._update()

    def group(self, name: str) -> TaskLogGroup:
        """Start a named section with its own messages and result."""
        if not self.done:
            self._buffers.append(_Buffer(header=name))
            self._update()
        return TaskLogGroup(self, name)

    def _close_group(self, name: str, status: Status, text: str) -> None:
        buffer = self._buffer(name)
        if buffer is None or self.done:
            return
        buffer.result = (status, text)
        self._update()

    def success(self, text: str, *, show_log: bool = False) -> None:
        self._complete("success", text, show_log)

    def error(self, text: str, *, show_log: bool = True) -> None:
        self._complete("error", text, show_log)

    def _complete(self, status: Status, text: str, show_log: bool) -> None:
        if self.done:
            return
        self._completed = (status, text, show_log)
        self._update()
        self._renderer.finish()
        logger.debug("task log %r finished: %s", self.title, status)

    # -- rendering ---------------------------------------------------------------

    def _status_symbol(self, status: Status) -> str:
        t = self.theme
        return t.green(t.symbols.success) if status == "success" else t.red(t.symbols.error)

    def _multiline(self, symbol: str, text: str) -> list[str]:
        bar = self.theme.gray(self.theme.symbols.bar)
        first, *rest = text.split("\n")
        return [f"{symbol}  {first}", *(f"{bar}  {line}" for line in rest)]

    def _buffer_lines(self, buffer: _Buffer, full: bool = False) -> list[str]:
        t = self.theme
        bar = t.gray(t.symbols.bar)
        out = []
        if buffer.header:
            out.append(f"{bar}  {t.bold(buffer.header)}")
        lines = [*buffer.scrolled, *buffer.lines] if full else buffer.lines
        out.extend(f"{bar}  {t.dim(line)}" for line in lines)
        return out

    def _result_lines(self, buffer: _Buffer) -> list[str]:
        assert buffer.result is not None
        status, text = buffer.result
        if status == "success" and buffer.lines and not self.retain_log:
            return []
        return self._multiline(self._status_symbol(status), text)

    def render(self) -> str:
        t = self.theme
        bar = t.gray(t.symbols.bar)
        lines = [bar, f"{t.green(t.symbols.step_submit)}  {self.title}"]
        lines.extend([bar] * self.spacing)

        if self._completed is not None:
            status, text, show_log = self._completed
            lines.extend(self._multiline(self._status_symbol(status), text))
            if show_log:
                for buffer in self._buffers:
                    lines.extend(self._buffer_lines(buffer, full=True))
        else:
            for buffer in self._buffers:
                if buffer.result is not None:
                    lines.extend(self._result_lines(buffer))
                else:
                    lines.extend(self._buffer_lines(buffer))
        return "\n".join(lines)

    def _update(self) -> None:
        self._renderer.render(self.render())


class TaskLogGroup:
    """A named section of a :class:`TaskLog`."""

    def __init__(self, log: TaskLog, name: str) -> None:
        self._log = log
        self.name = name

    def message(self, text: str, *, raw: bool = False) -> None:
        self._log.message(text, raw=raw, group=self.name)

    def success(self, text: str) -> None:
        self._log._close_group(self.name, "success", text)

    def error(self, text: str) -> None:
        self._log._close_group(self.name, "error", text)


def task_log(
    title: str,
    *,
    limit: int | None = None,
    retain_log: bool = False,
    spacing: int = 1,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
) -> TaskLog:
    """Open a task log.  Raises ``ValueError`` if *limit* is below 1."""
    return TaskLog(
        title,
        limit=limit,
        retain_log=retain_log,
        spacing=spacing,
        settings=settings,
        terminal=terminal,
    )
