"""The prompt state machine.

A :class:`Prompt` drives one widget from its first paint to a single
resolution.  Everything that distinguishes a text field from a select list
lives in a :class:`Behavior` object; the prompt owns the shared state
(value, cursor, error, lifecycle state), the event queue and the renderer.

Input, timer ticks, resizes, aborts and programmatic updates all travel
through one :class:`asyncio.Queue` and are handled strictly one at a time,
each followed by a repaint, so a spinner tick can never interleave with a
keypress.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generator, Literal, Protocol, Union

from pi.prompts.cancellation import CANCEL, CancellationToken
from pi.prompts.keys import KeyEvent, decode_key
from pi.prompts.render import FrameRenderer
from pi.prompts.settings import Action, PromptSettings, get_settings
from pi.prompts.terminal import ProcessTerminal, Terminal
from pi.prompts.theme import Theme

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

PromptState = Literal["initial", "active", "validate", "error", "submit", "cancel"]
TERMINAL_STATES: frozenset[str] = frozenset({"submit", "cancel"})

KeyOutcome = Literal["submit", "cancel"] | None
ValidationResult = Union[str, Exception, None]
Validator = Callable[[Any], Union[ValidationResult, Awaitable[ValidationResult]]]


def validation_message(result: ValidationResult) -> str:
    """Normalise a validator's return value to a message (empty means valid)."""
    if result is None:
        return ""
    if isinstance(result, Exception):
        return str(result) or type(result).__name__
    return str(result)


class Behavior(Protocol):
    """What a widget plugs into :class:`Prompt`."""

    # Widgets that edit typed text do not get printable key aliases (k/j/h/l)
    tracks_text: bool
    # Seconds between ticks, or None for a purely key-driven widget
    tick_interval: float | None

    def initial_value(self) -> Any: ...

    def initial_cursor(self) -> int: ...

    def handle_key(
        self, prompt: Prompt, key: KeyEvent, action: Action | None
    ) -> KeyOutcome | Awaitable[KeyOutcome]: ...

    def submit_value(self, prompt: Prompt) -> Any: ...

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult: ...

    def on_error(self, prompt: Prompt) -> None: ...

    def on_start(self, prompt: Prompt) -> None: ...

    def on_tick(self, prompt: Prompt) -> None: ...

    def render(self, prompt: Prompt) -> str: ...

    def close(self, prompt: Prompt) -> None: ...


class BaseBehavior:
    """Defaults for the optional parts of :class:`Behavior`."""

    tracks_text = False
    tick_interval: float | None = None

    def initial_value(self) -> Any:
        return None

    def initial_cursor(self) -> int:
        return 0

    def handle_key(
        self, prompt: Prompt, key: KeyEvent, action: Action | None
    ) -> KeyOutcome | Awaitable[KeyOutcome]:
        if action == "enter":
            return "submit"
        return None

    def submit_value(self, prompt: Prompt) -> Any:
        return prompt.value

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult:
        return None

    def on_error(self, prompt: Prompt) -> None:
        pass

    def on_start(self, prompt: Prompt) -> None:
        pass

    def on_tick(self, prompt: Prompt) -> None:
        pass

    def render(self, prompt: Prompt) -> str:
        raise NotImplementedError

    def close(self, prompt: Prompt) -> None:
        pass


# Queue events


@dataclass(frozen=True)
class _Key:
    key: KeyEvent


@dataclass(frozen=True)
class _Update:
    fn: Callable[[Prompt], None]


class _Tick:
    pass


class _Resize:
    pass


class _Abort:
    pass


_Event = Union[_Key, _Update, _Tick, _Resize, _Abort]


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------


class Prompt:
    """One interactive widget, resolved exactly once.

    ``await prompt`` (or ``await prompt.run()``) starts it and returns the
    submitted value, or :data:`CANCEL`.  A prompt can only be started once.
    """

    def __init__(
        self,
        behavior: Behavior,
        *,
        message: str = "",
        validate: Validator | None = None,
        settings: PromptSettings | None = None,
        terminal: Terminal | None = None,
        signal: CancellationToken | None = None,
        kind: str = "prompt",
    ) -> None:
        self.behavior = behavior
        self.message = message
        self.kind = kind
        self.settings = settings if settings is not None else get_settings()
        self.theme = Theme(self.settings)
        self.terminal: Terminal = terminal if terminal is not None else ProcessTerminal()
        self.signal = signal

        self.state: PromptState = "initial"
        self.value: Any = behavior.initial_value()
        self.error = ""
        self.cursor = behavior.initial_cursor()
        self.result: Any = None

        self._validate = validate
        self._renderer = FrameRenderer(self.terminal)
        self._queue: asyncio.Queue[_Event] = asyncio.Queue()
        self._started = False
        self._tick_handle: asyncio.TimerHandle | None = None
        self._in_flight: asyncio.Task | None = None
        self._abort_requested = False
        self._cleared = False
        self._last_frame = ""
        self._remove_signal_listener: Callable[[], None] | None = None

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        return self.terminal.columns

    @property
    def rows(self) -> int:
        return self.terminal.rows

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def frame(self) -> str:
        """The frame most recently painted."""
        return self._last_frame

    # -- lifecycle ----------------------------------------------------------

    def __await__(self) -> Generator[Any, None, Any]:
        return self.run().__await__()

    async def run(self) -> Any:
        """Start the prompt and wait for its resolution."""
        if self._started:
            raise RuntimeError(f"{self.kind} prompt has already been started")
        self._started = True
        logger.debug("%s prompt started: %r", self.kind, self.message)

        self.terminal.start(self._on_input, self._on_resize)
        try:
            try:
                if self.signal is not None:
                    self._remove_signal_listener = self.signal.add_listener(self.abort)
                self.terminal.hide_cursor()
                self._set_state("active")
                self.behavior.on_start(self)
                self._paint()
                self._schedule_tick()

                while not self.done:
                    event = await self._queue.get()
                    await self._dispatch(event)
            finally:
                self._teardown()
                if self._started_painting():
                    self._renderer.finish()
                self.terminal.show_cursor()
        finally:
            self.terminal.stop()

        logger.debug("%s prompt resolved: state=%s", self.kind, self.state)
        return self.result

    def _started_painting(self) -> bool:
        return self._renderer.row_count > 0

    def _teardown(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        if self._remove_signal_listener is not None:
            self._remove_signal_listener()
            self._remove_signal_listener = None
        self.behavior.close(self)

    # -- external entry points ---------------------------------------------

    def abort(self) -> None:
        """Cancel the prompt from outside (also used by the signal token).

        Any key handler or validator that is still awaiting is cancelled
        rather than waited for.
        """
        if self.done or not self._started:
            return
        self._abort_requested = True
        if self._in_flight is not None and not self._in_flight.done():
            self._in_flight.cancel()
        self._queue.put_nowait(_Abort())

    def post(self, fn: Callable[[Prompt], None]) -> None:
        """Run *fn(prompt)* in the prompt's event order, then repaint.

        Updates posted before the prompt starts run right after its first paint.
        """
        self._queue.put_nowait(_Update(fn))

    def resolve(self, state: Literal["submit", "cancel"], result: Any = None) -> None:
        """Finish the prompt without going through validation.

        Meant for behaviors and :meth:`post` callbacks (spinners, progress).
        """
        if self.done:
            return
        self.result = CANCEL if state == "cancel" else result
        self._set_state(state)

    # -- terminal callbacks --------------------------------------------------

    def _on_input(self, data: str) -> None:
        if not self._started or self.done:
            return
        key = decode_key(data)
        if key.kind == "release":
            return
        if (
            self._in_flight is not None
            and not self._in_flight.done()
            and self.settings.resolve(key, tracks_text=self.behavior.tracks_text) == "cancel"
        ):
            # An interrupt must not wait behind a slow hook
            self.abort()
            return
        self._queue.put_nowait(_Key(key))

    def _on_resize(self) -> None:
        if self._started:
            self._queue.put_nowait(_Resize())

    # -- event handling ------------------------------------------------------

    async def _dispatch(self, event: _Event) -> None:
        if self.done:
            return

        if isinstance(event, _Abort):
            self._cancel()
        elif isinstance(event, _Resize):
            self._renderer.on_resize()
            return
        elif isinstance(event, _Tick):
            self.behavior.on_tick(self)
            self._schedule_tick()
        elif isinstance(event, _Update):
            event.fn(self)
        elif isinstance(event, _Key):
            self._in_flight = asyncio.ensure_future(self._handle_key(event.key))
            try:
                await self._in_flight
            except asyncio.CancelledError:
                if not self._abort_requested:
                    raise
                self._cancel()
            finally:
                self._in_flight = None

        self._paint()

    async def _handle_key(self, key: KeyEvent) -> None:
        if not key.name and not key.char:
            return

        action = self.settings.resolve(key, tracks_text=self.behavior.tracks_text)
        if action == "cancel":
            self._cancel()
            return

        if self.state == "error":
            self._set_state("active")

        outcome = self.behavior.handle_key(self, key, action)
        if inspect.isawaitable(outcome):
            outcome = await outcome

        if outcome == "cancel":
            self._cancel()
        elif outcome == "submit":
            await self._submit()

    async def _submit(self) -> None:
        self._set_state("validate")
        value = self.behavior.submit_value(self)

        problem = validation_message(self.behavior.validate(self, value))
        if not problem and self._validate is not None:
            result = self._validate(value)
            if inspect.isawaitable(result):
                result = await result
            problem = validation_message(result)

        if problem:
            logger.debug("%s prompt validation failed: %s", self.kind, problem)
            self.error = problem
            self._set_state("error")
            self.behavior.on_error(self)
            return

        self.error = ""
        self.value = value
        self.result = value
        self._set_state("submit")

    def _cancel(self) -> None:
        if self.done:
            return
        self.result = CANCEL
        self._set_state("cancel")

    def _set_state(self, state: PromptState) -> None:
        if state != self.state:
            logger.debug("%s prompt: %s -> %s", self.kind, self.state, state)
            self.state = state

    def _schedule_tick(self) -> None:
        interval = self.behavior.tick_interval
        if interval is None or self.done:
            return
        queue = self._queue
        self._tick_handle = asyncio.get_running_loop().call_later(
            interval, lambda: queue.put_nowait(_Tick())
        )

    def _paint(self) -> None:
        if self._cleared:
            return
        self._last_frame = self.behavior.render(self)
        self._renderer.render(self._last_frame)

    def clear(self) -> None:
        """Erase everything the prompt painted and stop repainting."""
        self._renderer.clear()
        self._cleared = True
