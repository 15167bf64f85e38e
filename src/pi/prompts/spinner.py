"""Timer-driven status lines: ``spinner``, ``progress`` and ``tasks``.

A spinner is an ordinary :class:`~pi.prompts.prompt.Prompt` whose behavior
animates on ticks instead of reacting to keys.  The handle returned by
:func:`spinner` runs that prompt in a background task; every update is
posted into the prompt's event queue, so ticks and messages never race::

    s = spinner()
    s.start("Installing")
    ...
    await s.stop("Installed")
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Sequence, Union

from pi.prompts.cancellation import CancellationToken
from pi.prompts.keys import KeyEvent
from pi.prompts.prompt import BaseBehavior, KeyOutcome, Prompt
from pi.prompts.settings import Action, PromptSettings, get_settings
from pi.prompts.terminal import Terminal
from pi.prompts.theme import StyleFn, Theme

logger = logging.getLogger(__name__)

Indicator = Literal["dots", "timer"]
ProgressStyle = Literal["light", "heavy", "block"]

# Exit codes of a stopped spinner
EXIT_OK = 0
EXIT_CANCEL = 1
EXIT_ERROR = 2

_TRAILING_DOTS = re.compile(r"\.+$")


def strip_dots(message: str) -> str:
    return _TRAILING_DOTS.sub("", message)


def format_elapsed(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"[{minutes}m {secs}s]" if minutes > 0 else f"[{secs}s]"


class SpinnerBehavior(BaseBehavior):
    """Animated frame plus message; keys other than cancel are ignored."""

    def __init__(
        self,
        settings: PromptSettings,
        *,
        indicator: Indicator = "dots",
        frames: Sequence[str] | None = None,
        delay: float | None = None,
        style_frame: StyleFn | None = None,
        cancel_message: str | None = None,
        error_message: str | None = None,
    ) -> None:
        symbols = Theme(settings).symbols
        self.ci = settings.ci
        self.indicator = indicator
        self.frames = tuple(frames) if frames else symbols.spinner_frames
        self.tick_interval = None if self.ci else (delay if delay is not None else symbols.spinner_delay)
        self.style_frame = style_frame
        self.cancel_message = cancel_message if cancel_message is not None else settings.cancel_message
        self.error_message = error_message if error_message is not None else settings.error_message

        self.message = ""
        self.frame_index = 0
        # Grows by one dot every eight frames, wrapping after three
        self.dots = 0.0
        self.started_at = time.monotonic()
        self.exit_code: int | None = None
        self.silent = False

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        return None

    def on_tick(self, prompt: Prompt) -> None:
        self.frame_index = (self.frame_index + 1) % len(self.frames)
        self.dots = self.dots + 0.125 if self.dots < 4 else 0.0

    def finish(self, prompt: Prompt, code: int, message: str | None, *, silent: bool = False) -> None:
        """Stop animating and resolve the prompt with *code*."""
        if prompt.done:
            return
        self.exit_code = code
        self.silent = silent
        if message is not None:
            self.message = message
        if silent:
            prompt.clear()
        prompt.resolve("cancel" if code == EXIT_CANCEL else "submit")

    def effective_exit(self, prompt: Prompt) -> int | None:
        if self.exit_code is None and prompt.state == "cancel":
            # Interrupted by a key or the cancellation token
            return EXIT_CANCEL
        return self.exit_code

    def interrupted(self, prompt: Prompt) -> bool:
        return self.exit_code is None and prompt.state == "cancel"

    def label(self, prompt: Prompt) -> str:
        return self.message

    def elapsed(self) -> str:
        return format_elapsed(time.monotonic() - self.started_at)

    def render(self, prompt: Prompt) -> str:
        theme = prompt.theme
        s = theme.symbols
        code = self.effective_exit(prompt)
        if code is not None:
            if self.silent:
                return ""
            message = self.cancel_message if self.interrupted(prompt) else self.label(prompt)
            step = {
                EXIT_OK: theme.green(s.step_submit),
                EXIT_CANCEL: theme.red(s.step_cancel),
            }.get(code, theme.red(s.step_error))
            line = f"{step}  {message}"
            if self.indicator == "timer":
                line += f" {self.elapsed()}"
            return line

        style = self.style_frame or theme.magenta
        frame = style(self.frames[self.frame_index])
        label = self.label(prompt)
        if self.ci:
            line = f"{frame}  {label}..."
        elif self.indicator == "timer":
            line = f"{frame}  {label} {self.elapsed()}"
        else:
            line = f"{frame}  {label}{'.' * min(int(self.dots), 3)}"
        if theme.settings.with_guide:
            return f"{theme.gray(s.bar)}\n{line}"
        return line


class Spinner:
    """Handle for a running spinner prompt."""

    def __init__(
        self,
        behavior: SpinnerBehavior,
        *,
        on_cancel: Callable[[], Any] | None = None,
        settings: PromptSettings | None = None,
        terminal: Terminal | None = None,
        signal: CancellationToken | None = None,
    ) -> None:
        self.behavior = behavior
        self.on_cancel = on_cancel
        self.prompt = Prompt(behavior, settings=settings, terminal=terminal, signal=signal, kind="spinner")
        self._task: asyncio.Task[Any] | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.behavior.effective_exit(self.prompt) == EXIT_CANCEL

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self.prompt.done

    def start(self, message: str = "") -> None:
        """Show the spinner.  Must be called from a running event loop."""
        if self._task is not None:
            raise RuntimeError("spinner has already been started")
        self.behavior.message = strip_dots(message)
        self.behavior.started_at = time.monotonic()
        self._task = asyncio.ensure_future(self._run())

    async def _run(self) -> Any:
        result = await self.prompt.run()
        if self.behavior.interrupted(self.prompt):
            logger.debug("spinner interrupted")
            if self.on_cancel is not None:
                self.on_cancel()
        return result

    def message(self, message: str) -> None:
        """Replace the text next to the spinner."""
        text = strip_dots(message)
        if self._task is None:
            self.behavior.message = text
            return

        def update(_: Prompt) -> None:
            self.behavior.message = text

        self.prompt.post(update)

    async def _finish(self, code: int, message: str | None, *, silent: bool = False) -> None:
        if self._task is None:
            return
        if not self.prompt.done:
            self.prompt.post(lambda p: self.behavior.finish(p, code, message, silent=silent))
        await self._task

    async def stop(self, message: str | None = None) -> None:
        """Finish successfully, optionally replacing the message."""
        await self._finish(EXIT_OK, message)

    async def cancel(self, message: str | None = None) -> None:
        await self._finish(EXIT_CANCEL, message if message is not None else self.behavior.cancel_message)

    async def error(self, message: str | None = None) -> None:
        await self._finish(EXIT_ERROR, message if message is not None else self.behavior.error_message)

    async def clear(self) -> None:
        """Stop and erase the spinner line."""
        await self._finish(EXIT_OK, None, silent=True)


def spinner(
    *,
    indicator: Indicator = "dots",
    frames: Sequence[str] | None = None,
    delay: float | None = None,
    style_frame: StyleFn | None = None,
    on_cancel: Callable[[], Any] | None = None,
    cancel_message: str | None = None,
    error_message: str | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Spinner:
    resolved = settings if settings is not None else get_settings()
    behavior = SpinnerBehavior(
        resolved,
        indicator=indicator,
        frames=frames,
        delay=delay,
        style_frame=style_frame,
        cancel_message=cancel_message,
        error_message=error_message,
    )
    return Spinner(behavior, on_cancel=on_cancel, settings=resolved, terminal=terminal, signal=signal)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class ProgressBehavior(SpinnerBehavior):
    """Spinner whose label is a bar filled in proportion to ``value / max``."""

    def __init__(
        self,
        settings: PromptSettings,
        *,
        style: ProgressStyle = "heavy",
        max: int = 100,
        size: int = 40,
        **kwargs: Any,
    ) -> None:
        super().__init__(settings, **kwargs)
        self.style = style
        self.max = max
        self.size = size
        self.value = 0

    def advance(self, step: float, message: str | None) -> None:
        self.value = min(max(self.value + step, 0), self.max)
        if message is not None:
            self.message = strip_dots(message)

    def label(self, prompt: Prompt) -> str:
        theme = prompt.theme
        char = getattr(theme.symbols, f"progress_{self.style}")
        code = self.effective_exit(prompt)
        if code is None:
            color = theme.magenta
        elif code == EXIT_OK:
            color = theme.green
        else:
            color = theme.red
        filled = int(self.value / self.max * self.size)
        bar = color(char * filled) + theme.dim(char * (self.size - filled))
        return f"{bar} {self.message}"


class Progress(Spinner):
    behavior: ProgressBehavior

    @property
    def value(self) -> float:
        return self.behavior.value

    def advance(self, step: float = 1, message: str | None = None) -> None:
        """Move the bar forward by *step*, never past ``max``."""
        if self._task is None:
            self.behavior.advance(step, message)
            return
        self.prompt.post(lambda _: self.behavior.advance(step, message))

    def message(self, message: str) -> None:
        self.advance(0, message)


def progress(
    *,
    style: ProgressStyle = "heavy",
    max: int = 100,
    size: int = 40,
    indicator: Indicator = "dots",
    on_cancel: Callable[[], Any] | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Progress:
    """A spinner with a progress bar.  Raises ``ValueError`` if *max* is below 1."""
    if max < 1:
        raise ValueError(f"max must be at least 1, got {max}")
    if style not in ("light", "heavy", "block"):
        raise ValueError(f"unknown progress style {style!r}")
    resolved = settings if settings is not None else get_settings()
    behavior = ProgressBehavior(resolved, style=style, max=max, size=size if size > 0 else 1, indicator=indicator)
    return Progress(behavior, on_cancel=on_cancel, settings=resolved, terminal=terminal, signal=signal)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

TaskFn = Callable[[Callable[[str], None]], Union[str, None, Awaitable[Union[str, None]]]]


@dataclass
class Task:
    title: str
    task: TaskFn
    enabled: bool = True


async def tasks(
    items: Sequence[Task],
    *,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> None:
    """Run each enabled task under its own spinner, one after another.

    A task receives a function that updates its spinner message; the string
    it returns (if any) becomes the final message.
    """
    for item in items:
        if not item.enabled:
            continue
        s = spinner(settings=settings, terminal=terminal, signal=signal)
        s.start(item.title)
        try:
            result = item.task(s.message)
            if inspect.isawaitable(result):
                result = await result
        except BaseException:
            await s.error()
            raise
        await s.stop(result or item.title)
