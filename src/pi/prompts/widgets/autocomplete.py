"""Type-to-filter widgets: ``autocomplete``, ``autocomplete_multiselect`` and ``suggestion``.

The two autocomplete prompts keep a search line above an option list; every
edit of the search text re-filters the list.  ``suggestion`` completes the
typed text inline from a caller-supplied matcher, which may be a coroutine
function: lookups then run as tasks, a newer keystroke cancels the pending
one, and results that arrive for stale text are dropped.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, Sequence, Union

from pi.prompts.cancellation import CancellationToken
from pi.prompts.keys import KeyEvent
from pi.prompts.prompt import BaseBehavior, KeyOutcome, Prompt, ValidationResult, Validator
from pi.prompts.settings import Action, PromptSettings
from pi.prompts.terminal import Terminal
from pi.prompts.theme import Theme
from pi.prompts.widgets.common import compose, hint_text, prompt_kwargs
from pi.prompts.widgets.multiselect import checkbox
from pi.prompts.widgets.options import Option, find_cursor, first_enabled, index_of, limit_options, to_options
from pi.prompts.widgets.text import LineEditor, input_with_cursor

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "No matches found"
REQUIRED_ITEM_MESSAGE = "Please select at least one item"

OptionFilter = Callable[[str, Option[Any]], bool]
Suggest = Callable[[str], Union[Iterable[str], Awaitable[Iterable[str]]]]

# Lines the search box adds around the option list
_SEARCH_ROWS = 3


def default_filter(search: str, option: Option[Any]) -> bool:
    """Case-insensitive substring match on label, value and hint."""
    if not search:
        return True
    term = search.lower()
    return (
        term in option.display.lower()
        or term in str(option.value).lower()
        or term in (option.hint or "").lower()
    )


def _plural(count: int) -> str:
    return f"{count} match" if count == 1 else f"{count} matches"


# ---------------------------------------------------------------------------
# Autocomplete
# ---------------------------------------------------------------------------


class AutocompleteBehavior(BaseBehavior):
    """A search line that filters an option list; ``return`` picks the highlighted one."""

    tracks_text = True
    instructions = ("↑/↓ to select", "Enter: confirm", "Type: to search")

    def __init__(
        self,
        options: list[Option[Any]],
        *,
        filter: OptionFilter | None = None,
        placeholder: str = "",
        max_items: int | None = None,
        initial_value: Any = None,
        initial_user_input: str = "",
    ) -> None:
        self.options = options
        self.filter = filter or default_filter
        self.placeholder = placeholder
        self.max_items = max_items
        self.query = initial_user_input
        self.query_cursor = len(initial_user_input)
        self.filtered = self._matching(self.query)
        start = index_of(self.filtered, initial_value) if initial_value is not None else None
        self._start = first_enabled(self.filtered, start or 0)

    def _matching(self, query: str) -> list[Option[Any]]:
        return [o for o in self.options if self.filter(query, o)]

    def initial_value(self) -> Any:
        return self._highlighted_at(self._start)

    def initial_cursor(self) -> int:
        return self._start

    def _highlighted_at(self, cursor: int) -> Any:
        if not self.filtered or self.filtered[cursor].disabled:
            return None
        return self.filtered[cursor].value

    def refilter(self, prompt: Prompt) -> None:
        """Re-run the filter, keeping the highlight on the same option when it survives."""
        previous = self.filtered[prompt.cursor].value if self.filtered else None
        self.filtered = self._matching(self.query)
        kept = index_of(self.filtered, previous) if previous is not None else None
        prompt.cursor = first_enabled(self.filtered, kept or 0)

    def edit_query(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> None:
        edited = LineEditor.apply(self.query, self.query_cursor, key, action)
        if edited is None:
            return
        changed = edited[0] != self.query
        self.query, self.query_cursor = edited
        if changed:
            self.refilter(prompt)

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        if action in ("up", "down"):
            prompt.cursor = find_cursor(prompt.cursor, -1 if action == "up" else 1, self.filtered)
        elif action == "enter":
            return "submit"
        else:
            self.edit_query(prompt, key, action)
        self.after_key(prompt)
        return None

    def after_key(self, prompt: Prompt) -> None:
        prompt.value = self._highlighted_at(prompt.cursor)

    def submit_value(self, prompt: Prompt) -> Any:
        return self._highlighted_at(prompt.cursor)

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult:
        if not self.filtered:
            return NO_MATCHES_MESSAGE
        return None

    # -- rendering -----------------------------------------------------------

    def search_line(self, prompt: Prompt) -> str:
        theme = prompt.theme
        field = input_with_cursor(theme, self.query, self.query_cursor, self.placeholder)
        line = f"{theme.dim('Search:')} {field}"
        if len(self.filtered) != len(self.options):
            line += theme.dim(f" ({_plural(len(self.filtered))})")
        return line

    def style_option(self, theme: Theme, prompt: Prompt, option: Option[Any], active: bool) -> str:
        s = theme.symbols
        if active:
            return f"{theme.green(s.radio_active)} {option.display}{hint_text(theme, option.hint)}"
        return f"{theme.dim(s.radio_inactive)} {theme.dim(option.display)}"

    def summary(self, prompt: Prompt) -> str:
        if prompt.state == "cancel":
            return self.query
        if prompt.value is None:
            return ""
        found = index_of(self.options, prompt.value)
        return self.options[found].display if found is not None else str(prompt.value)

    def render(self, prompt: Prompt) -> str:
        theme = prompt.theme
        body = [self.search_line(prompt)]
        if not self.filtered and self.query and prompt.state != "error":
            body.append(theme.yellow(NO_MATCHES_MESSAGE))
        if self.filtered:
            body.extend(
                limit_options(
                    self.filtered,
                    prompt.cursor,
                    lambda option, active: self.style_option(theme, prompt, option, active),
                    rows=prompt.rows - _SEARCH_ROWS,
                    max_items=self.max_items,
                    overflow=theme.dim("..."),
                )
            )
        body.append(theme.dim(" • ".join(self.instructions)))
        return compose(prompt, body, self.summary(prompt))


class AutocompleteMultiSelectBehavior(AutocompleteBehavior):
    """Autocomplete where ``tab`` toggles the highlighted option into a selection list.

    Space is typed into the search text like any other character.
    """

    instructions = ("↑/↓ to navigate", "Tab: select", "Enter: confirm", "Type: to search")

    def __init__(
        self,
        options: list[Option[Any]],
        *,
        initial_values: Iterable[Any] = (),
        required: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(options, **kwargs)
        self.required = required
        wanted = list(initial_values)
        self._initial = [o.value for o in options if o.value in wanted and not o.disabled]

    def initial_value(self) -> list[Any]:
        return list(self._initial)

    def _ordered(self, values: Sequence[Any]) -> list[Any]:
        return [o.value for o in self.options if o.value in values]

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        if key.key_id == "tab":
            if self.filtered:
                option = self.filtered[prompt.cursor]
                if not option.disabled:
                    if option.value in prompt.value:
                        prompt.value = [v for v in prompt.value if v != option.value]
                    else:
                        prompt.value = self._ordered([*prompt.value, option.value])
            return None
        return super().handle_key(prompt, key, action)

    def after_key(self, prompt: Prompt) -> None:
        pass

    def submit_value(self, prompt: Prompt) -> Any:
        return list(prompt.value)

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult:
        if self.required and not value:
            return REQUIRED_ITEM_MESSAGE
        return None

    def style_option(self, theme: Theme, prompt: Prompt, option: Option[Any], active: bool) -> str:
        return checkbox(theme, option, active=active, selected=option.value in prompt.value)

    def summary(self, prompt: Prompt) -> str:
        if prompt.state == "cancel":
            return self.query
        count = len(prompt.value)
        return f"{count} item selected" if count == 1 else f"{count} items selected"


# ---------------------------------------------------------------------------
# Suggestion
# ---------------------------------------------------------------------------


class SuggestionBehavior(BaseBehavior):
    """Inline completion: the highlighted candidate's tail is drawn after the text."""

    tracks_text = True

    def __init__(self, suggest: Suggest, *, initial_value: str = "") -> None:
        self.suggest = suggest
        self._initial = initial_value
        self.candidates: list[str] = []
        self.selection = 0
        self._lookup: asyncio.Future[Any] | None = None
        # Bumped on every lookup so late results for old text are ignored
        self._generation = 0

    def initial_value(self) -> str:
        return self._initial

    def initial_cursor(self) -> int:
        return len(self._initial)

    @property
    def completion(self) -> str:
        if not self.candidates:
            return ""
        return self.candidates[self.selection]

    def tail(self, prompt: Prompt) -> str:
        return self.completion[len(prompt.value) :]

    # -- lookups ---------------------------------------------------------------

    def on_start(self, prompt: Prompt) -> None:
        self.lookup(prompt)

    def lookup(self, prompt: Prompt) -> None:
        """Ask the matcher for candidates completing the current text."""
        self._cancel_lookup()
        self._generation += 1
        generation = self._generation
        text = prompt.value
        result = self.suggest(text)
        if not inspect.isawaitable(result):
            self._apply(prompt, text, result)
            return

        task = asyncio.ensure_future(result)
        self._lookup = task

        def done(fut: asyncio.Future[Any]) -> None:
            if fut.cancelled() or generation != self._generation:
                return
            self._lookup = None
            error = fut.exception()
            if error is not None:
                prompt.post(lambda _: _reraise(error))
                return
            candidates = fut.result()
            prompt.post(lambda p: self._apply(p, text, candidates))

        task.add_done_callback(done)

    def _apply(self, prompt: Prompt, text: str, candidates: Iterable[str]) -> None:
        if prompt.value != text:
            logger.debug("dropping stale suggestions for %r", text)
            return
        self.candidates = [c for c in candidates if c.startswith(text) and c != text]
        if self.selection >= len(self.candidates):
            self.selection = 0

    def _cancel_lookup(self) -> None:
        if self._lookup is not None and not self._lookup.done():
            self._lookup.cancel()
        self._lookup = None

    def close(self, prompt: Prompt) -> None:
        self._cancel_lookup()

    # -- keys ------------------------------------------------------------------

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        at_end = prompt.cursor >= len(prompt.value)
        if action in ("up", "down"):
            if self.candidates:
                step = -1 if action == "up" else 1
                self.selection = (self.selection + step) % len(self.candidates)
            return None
        if key.key_id == "tab" or (action == "right" and at_end and self.candidates):
            if self.candidates:
                prompt.value = self.completion
                prompt.cursor = len(prompt.value)
                self.selection = 0
                self.candidates = []
                self.lookup(prompt)
            return None
        if action == "enter":
            return "submit"

        edited = LineEditor.apply(prompt.value, prompt.cursor, key, action)
        if edited is None:
            return None
        changed = edited[0] != prompt.value
        prompt.value, prompt.cursor = edited
        if changed:
            self.selection = 0
            self.candidates = []
            self.lookup(prompt)
        return None

    def render(self, prompt: Prompt) -> str:
        theme = prompt.theme
        text = prompt.value
        tail = self.tail(prompt)
        if prompt.cursor < len(text):
            line = input_with_cursor(theme, text, prompt.cursor) + theme.gray(tail)
        elif tail:
            line = text + theme.inverse_cursor(theme.gray(tail[0])) + theme.gray(tail[1:])
        else:
            line = text + theme.inverse_cursor("")
        return compose(prompt, [line], text)


def _reraise(error: BaseException) -> None:
    raise error


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def autocomplete(
    message: str,
    options: Iterable[Any],
    *,
    filter: OptionFilter | None = None,
    placeholder: str = "",
    max_items: int | None = None,
    initial_value: Any = None,
    initial_user_input: str = "",
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Search a list and pick one option.  Resolves to its value, or ``CANCEL``."""
    behavior = AutocompleteBehavior(
        to_options(options),
        filter=filter,
        placeholder=placeholder,
        max_items=max_items,
        initial_value=initial_value,
        initial_user_input=initial_user_input,
    )
    return Prompt(
        behavior,
        kind="autocomplete",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )


def autocomplete_multiselect(
    message: str,
    options: Iterable[Any],
    *,
    filter: OptionFilter | None = None,
    placeholder: str = "",
    max_items: int | None = None,
    initial_values: Iterable[Any] = (),
    required: bool = True,
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Search a list and pick any number of options with ``tab``."""
    behavior = AutocompleteMultiSelectBehavior(
        to_options(options),
        filter=filter,
        placeholder=placeholder,
        max_items=max_items,
        initial_values=initial_values,
        required=required,
    )
    return Prompt(
        behavior,
        kind="autocomplete_multiselect",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )


def suggestion(
    message: str,
    suggest: Suggest,
    *,
    initial_value: str = "",
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Free text with inline completions from *suggest* (a function or coroutine function)."""
    return Prompt(
        SuggestionBehavior(suggest, initial_value=initial_value),
        kind="suggestion",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )
