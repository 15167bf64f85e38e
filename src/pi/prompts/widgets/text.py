"""Text entry: text, password, number and multi-line prompts."""

from __future__ import annotations

import re
from typing import Any

from pi.prompts.cancellation import CancellationToken
from pi.prompts.keys import KeyEvent
from pi.prompts.prompt import BaseBehavior, KeyOutcome, Prompt, ValidationResult, Validator
from pi.prompts.settings import Action, PromptSettings, get_settings
from pi.prompts.terminal import Terminal
from pi.prompts.theme import Theme
from pi.prompts.widgets.common import compose, prompt_kwargs

NUMBER_RE = re.compile(r"^[-+]?[0-9]+((\.)|(\.[0-9]+))?$")
INVALID_NUMBER_MESSAGE = "Please input a valid number value"

_WORD_BACK_RE = re.compile(r"\S*\s*$")


def clean_paste(text: str) -> str:
    """Flatten pasted text to one line: newlines become spaces, tabs vanish."""
    return re.sub(r"[\r\n]+", " ", text).replace("\t", "")


def input_with_cursor(theme: Theme, text: str, cursor: int, placeholder: str = "") -> str:
    """*text* with a block cursor drawn at *cursor*, or the dimmed placeholder."""
    if not text:
        if placeholder:
            return theme.inverse_cursor(placeholder[0]) + theme.dim(placeholder[1:])
        return theme.inverse_cursor("")
    c = min(cursor, len(text))
    return text[:c] + theme.inverse_cursor(text[c : c + 1]) + text[c + 1 :]


class LineEditor:
    """Edit operations on a ``(text, cursor)`` pair.

    Returns the new pair, or ``None`` if the key is not an editing key.
    """

    @staticmethod
    def apply(text: str, cursor: int, key: KeyEvent, action: Action | None) -> tuple[str, int] | None:
        key_id = key.key_id
        if key.is_paste:
            chunk = clean_paste(key.char)
            return text[:cursor] + chunk + text[cursor:], cursor + len(chunk)
        if key_id in ("backspace", "ctrl+h"):
            if cursor == 0:
                return text, cursor
            return text[: cursor - 1] + text[cursor:], cursor - 1
        if key_id in ("delete", "ctrl+d"):
            return text[:cursor] + text[cursor + 1 :], cursor
        if action == "left" or key_id == "ctrl+b":
            return text, max(cursor - 1, 0)
        if action == "right" or key_id == "ctrl+f":
            return text, min(cursor + 1, len(text))
        if key_id in ("home", "ctrl+a"):
            return text, 0
        if key_id in ("end", "ctrl+e"):
            return text, len(text)
        if key_id == "ctrl+u":
            return text[cursor:], 0
        if key_id == "ctrl+k":
            return text[:cursor], cursor
        if key_id in ("ctrl+w", "alt+backspace"):
            head = _WORD_BACK_RE.sub("", text[:cursor])
            return head + text[cursor:], len(head)
        if key.is_printable:
            return text[:cursor] + key.char + text[cursor:], cursor + len(key.char)
        return None


class TextBehavior(BaseBehavior):
    """A one-line editor with an inverse-video cursor."""

    tracks_text = True

    def __init__(
        self,
        *,
        placeholder: str = "",
        default_value: str | None = None,
        initial_value: str = "",
        mask: str | None = None,
        clear_on_error: bool = False,
    ) -> None:
        self.placeholder = placeholder
        self.default_value = default_value
        self._initial = initial_value or ""
        self.mask = mask
        self.clear_on_error = clear_on_error

    def initial_value(self) -> str:
        return self._initial

    def initial_cursor(self) -> int:
        return len(self._initial)

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        if action == "enter":
            return "submit"
        edited = LineEditor.apply(prompt.value or "", prompt.cursor, key, action)
        if edited is not None:
            prompt.value, prompt.cursor = edited
        return None

    def submit_value(self, prompt: Prompt) -> Any:
        text = prompt.value or ""
        if not text and self.default_value is not None:
            return self.default_value
        return text

    def on_error(self, prompt: Prompt) -> None:
        if self.clear_on_error:
            prompt.value = ""
            prompt.cursor = 0

    def displayed(self, text: str) -> str:
        if self.mask is None:
            return text
        return self.mask * len(text)

    def input_line(self, prompt: Prompt) -> str:
        return input_with_cursor(
            prompt.theme, self.displayed(prompt.value or ""), prompt.cursor, self.placeholder
        )

    def render(self, prompt: Prompt) -> str:
        # After submit, value already holds the default when the line was empty
        summary = self.displayed(str(prompt.value or ""))
        return compose(prompt, [self.input_line(prompt)], summary)


class NumberBehavior(TextBehavior):
    """Text entry restricted to decimal numbers, resolving to ``int`` or ``float``."""

    def __init__(
        self,
        *,
        min_value: float | None = None,
        max_value: float | None = None,
        default_number: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.min_value = min_value
        self.max_value = max_value
        self.default_number = default_number

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        if action in ("up", "down") and NUMBER_RE.match(prompt.value or "0"):
            current = to_number(prompt.value or "0")
            step = 1 if action == "up" else -1
            prompt.value = str(self._clamp(current + step))
            prompt.cursor = len(prompt.value)
            return None
        return super().handle_key(prompt, key, action)

    def _clamp(self, value: float) -> float:
        if self.min_value is not None:
            value = max(value, self.min_value)
        if self.max_value is not None:
            value = min(value, self.max_value)
        return value

    def submit_value(self, prompt: Prompt) -> Any:
        text = (prompt.value or "").strip()
        if not text:
            return self.default_number
        if not NUMBER_RE.match(text):
            return text
        return to_number(text)

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult:
        if isinstance(value, str):
            return INVALID_NUMBER_MESSAGE
        if value is None:
            return None
        if self.min_value is not None and value < self.min_value:
            return f"Please enter a number greater than or equal to {self.min_value}"
        if self.max_value is not None and value > self.max_value:
            return f"Please enter a number less than or equal to {self.max_value}"
        return None

    def render(self, prompt: Prompt) -> str:
        if prompt.state == "submit":
            # value is the parsed number (or None) once submitted
            summary = "" if prompt.value is None else str(prompt.value)
            return compose(prompt, [], summary)
        return compose(prompt, [self.input_line(prompt)], prompt.value or "")


def to_number(text: str) -> int | float:
    """Parse a matched number string; integral text gives an ``int``."""
    if "." in text:
        return float(text)
    return int(text)


# ---------------------------------------------------------------------------
# Multi-line entry
# ---------------------------------------------------------------------------

# Return inserts a newline, so submitting needs its own keys
MULTILINE_SUBMIT_KEYS = ("ctrl+d", "alt+return", "ctrl+return")


def line_and_column(text: str, cursor: int) -> tuple[int, int]:
    before = text[:cursor]
    return before.count("\n"), cursor - (before.rfind("\n") + 1)


def move_line(text: str, cursor: int, delta: int) -> int:
    """Cursor offset one line up or down, keeping the column where it fits.

    Moving above the first line goes to the start of the text and below the
    last line to its end.
    """
    lines = text.split("\n")
    row, col = line_and_column(text, cursor)
    target = row + delta
    if target < 0:
        return 0
    if target >= len(lines):
        return len(text)
    start = sum(len(line) + 1 for line in lines[:target])
    return start + min(col, len(lines[target]))


class MultilineBehavior(TextBehavior):
    """A text area: return starts a new line, ctrl+d submits."""

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        text = prompt.value or ""
        cursor = prompt.cursor
        if key.key_id in MULTILINE_SUBMIT_KEYS:
            return "submit"
        if action == "enter":
            prompt.value, prompt.cursor = text[:cursor] + "\n" + text[cursor:], cursor + 1
        elif action in ("up", "down"):
            prompt.cursor = move_line(text, cursor, -1 if action == "up" else 1)
        elif key.is_paste:
            chunk = re.sub(r"\r\n?", "\n", key.char).replace("\t", "")
            prompt.value, prompt.cursor = text[:cursor] + chunk + text[cursor:], cursor + len(chunk)
        elif key.key_id in ("home", "end"):
            row, _ = line_and_column(text, cursor)
            start = sum(len(line) + 1 for line in text.split("\n")[:row])
            end = text.find("\n", start)
            if key.key_id == "home":
                prompt.cursor = start
            else:
                prompt.cursor = len(text) if end < 0 else end
        else:
            edited = LineEditor.apply(text, cursor, key, action)
            if edited is not None:
                prompt.value, prompt.cursor = edited
        return None

    def input_lines(self, prompt: Prompt) -> list[str]:
        text = prompt.value or ""
        if not text:
            return [input_with_cursor(prompt.theme, "", 0, self.placeholder)]
        row, col = line_and_column(text, prompt.cursor)
        return [
            input_with_cursor(prompt.theme, line, col) if i == row else line
            for i, line in enumerate(text.split("\n"))
        ]

    def render(self, prompt: Prompt) -> str:
        return compose(prompt, self.input_lines(prompt), str(prompt.value or ""))


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def text(
    message: str,
    *,
    placeholder: str = "",
    default_value: str | None = None,
    initial_value: str = "",
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Ask for a line of text.  Resolves to the string, or ``CANCEL``."""
    behavior = TextBehavior(
        placeholder=placeholder,
        default_value=default_value,
        initial_value=initial_value,
    )
    return Prompt(
        behavior,
        kind="text",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )


def password(
    message: str,
    *,
    mask: str | None = None,
    clear_on_error: bool = False,
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Ask for a secret; every character is shown as *mask*."""
    if mask is None:
        resolved = settings if settings is not None else get_settings()
        mask = Theme(resolved).symbols.password_mask
    return Prompt(
        TextBehavior(mask=mask, clear_on_error=clear_on_error),
        kind="password",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )


def number(
    message: str,
    *,
    placeholder: float | None = None,
    default_value: float | None = None,
    initial_value: float | None = None,
    min: float | None = None,
    max: float | None = None,
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Ask for a number.  Resolves to ``int``/``float``, ``None`` if left empty."""
    if min is not None and max is not None and min > max:
        raise ValueError(f"min ({min}) must not be greater than max ({max})")

    behavior = NumberBehavior(
        min_value=min,
        max_value=max,
        default_number=default_value,
        placeholder="" if placeholder is None else str(placeholder),
        initial_value="" if initial_value is None else str(initial_value),
    )
    return Prompt(
        behavior,
        kind="number",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )


def multiline(
    message: str,
    *,
    placeholder: str = "",
    default_value: str | None = None,
    initial_value: str = "",
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Ask for several lines of text, submitted with ctrl+d."""
    behavior = MultilineBehavior(
        placeholder=placeholder,
        default_value=default_value,
        initial_value=initial_value,
    )
    return Prompt(
        behavior,
        kind="multiline",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )
