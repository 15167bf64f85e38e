"""Single choice from a list: ``select`` and ``select_key``."""

from __future__ import annotations

from typing import Any, Iterable

from pi.prompts.cancellation import CancellationToken
from pi.prompts.keys import KeyEvent
from pi.prompts.prompt import BaseBehavior, KeyOutcome, Prompt, ValidationResult
from pi.prompts.settings import Action, PromptSettings
from pi.prompts.terminal import Terminal
from pi.prompts.widgets.common import compose, hint_text, prompt_kwargs
from pi.prompts.widgets.options import (
    Option,
    find_cursor,
    first_enabled,
    index_of,
    limit_options,
    to_options,
)

NO_OPTION_MESSAGE = "No option is available"


class SelectBehavior(BaseBehavior):
    """Radio list with a wrapping cursor that skips disabled options."""

    def __init__(
        self,
        options: list[Option[Any]],
        *,
        initial_value: Any = None,
        max_items: int | None = None,
    ) -> None:
        self.options = options
        self.max_items = max_items
        start = index_of(options, initial_value) if initial_value is not None else None
        if start is None or options[start].disabled:
            start = first_enabled(options)
        self._start = start

    def initial_value(self) -> Any:
        return self.options[self._start].value

    def initial_cursor(self) -> int:
        return self._start

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        if action in ("up", "left"):
            prompt.cursor = find_cursor(prompt.cursor, -1, self.options)
        elif action in ("down", "right"):
            prompt.cursor = find_cursor(prompt.cursor, 1, self.options)
        elif action == "enter":
            return "submit"
        prompt.value = self.options[prompt.cursor].value
        return None

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult:
        if self.options[prompt.cursor].disabled:
            return NO_OPTION_MESSAGE
        return None

    def style_option(self, prompt: Prompt, option: Option[Any], active: bool) -> str:
        theme = prompt.theme
        s = theme.symbols
        label = option.display
        if option.disabled:
            hint = hint_text(theme, option.hint)
            return f"{theme.gray(s.radio_inactive)} {theme.gray(label)}{hint}"
        if active:
            hint = hint_text(theme, option.hint)
            return f"{theme.green(s.radio_active)} {label}{hint}"
        return f"{theme.dim(s.radio_inactive)} {theme.dim(label)}"

    def render(self, prompt: Prompt) -> str:
        body = limit_options(
            self.options,
            prompt.cursor,
            lambda option, active: self.style_option(prompt, option, active),
            rows=prompt.rows,
            max_items=self.max_items,
            overflow=prompt.theme.dim("..."),
        )
        return compose(prompt, body, self.options[prompt.cursor].display)


class SelectKeyBehavior(BaseBehavior):
    """Each option is chosen by typing the first character of its value."""

    # Option keys are letters, so k/j/h/l must not navigate
    tracks_text = True

    def __init__(self, options: list[Option[Any]], *, case_sensitive: bool = False) -> None:
        self.options = options
        self.case_sensitive = case_sensitive

    def initial_value(self) -> Any:
        return None

    def _key_of(self, option: Option[Any]) -> str:
        key = str(option.value)[:1]
        return key if self.case_sensitive else key.lower()

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        if not key.is_printable:
            return None
        pressed = key.char if self.case_sensitive else key.char.lower()
        for i, option in enumerate(self.options):
            if not option.disabled and self._key_of(option) == pressed:
                prompt.cursor = i
                prompt.value = option.value
                return "submit"
        return None

    def render(self, prompt: Prompt) -> str:
        theme = prompt.theme
        body = []
        for i, option in enumerate(self.options):
            hint = hint_text(theme, option.hint)
            tag = f" {option.value} "
            if option.disabled:
                body.append(f"{theme.gray(tag)} {theme.gray(option.display)}{hint}")
            elif i == prompt.cursor and prompt.value is not None:
                body.append(f"{theme.cyan(tag)} {option.display}{hint}")
            else:
                body.append(f"{theme.gray(theme.inverse(tag))} {option.display}{hint}")
        summary = self.options[prompt.cursor].display if prompt.value is not None else ""
        return compose(prompt, body, summary)


def select(
    message: str,
    options: Iterable[Any],
    *,
    initial_value: Any = None,
    max_items: int | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Pick one option.  Resolves to the option's value, or ``CANCEL``.

    *options* may hold :class:`Option` objects, ``{"value", "label", "hint",
    "disabled"}`` mappings or bare values.  Raises ``ValueError`` if empty.
    """
    return Prompt(
        SelectBehavior(to_options(options), initial_value=initial_value, max_items=max_items),
        kind="select",
        **prompt_kwargs(message=message, settings=settings, terminal=terminal, signal=signal),
    )


def select_key(
    message: str,
    options: Iterable[Any],
    *,
    case_sensitive: bool = False,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Pick one option by pressing the first character of its value."""
    return Prompt(
        SelectKeyBehavior(to_options(options), case_sensitive=case_sensitive),
        kind="select_key",
        **prompt_kwargs(message=message, settings=settings, terminal=terminal, signal=signal),
    )
