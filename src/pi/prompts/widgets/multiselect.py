"""Multiple choice: ``multiselect`` and ``group_multiselect``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from pi.prompts.cancellation import CancellationToken
from pi.prompts.keys import KeyEvent
from pi.prompts.prompt import BaseBehavior, KeyOutcome, Prompt, ValidationResult, Validator
from pi.prompts.settings import Action, PromptSettings
from pi.prompts.terminal import Terminal
from pi.prompts.theme import Theme
from pi.prompts.widgets.common import compose, hint_text, prompt_kwargs
from pi.prompts.widgets.options import (
    Option,
    find_cursor,
    first_enabled,
    index_of,
    limit_options,
    to_options,
)

REQUIRED_MESSAGE = "Please select at least one option. Press space to select, enter to submit"


def toggle_all(selected: list[Any], enabled: list[Any]) -> list[Any]:
    """Select every enabled value, or clear the selection if that is already the case."""
    if all(v in selected for v in enabled) and all(v in enabled for v in selected):
        return []
    return list(enabled)


def invert(selected: list[Any], enabled: list[Any]) -> list[Any]:
    return [value for value in enabled if value not in selected]


def checkbox(theme: Theme, option: Option[Any], *, active: bool, selected: bool) -> str:
    s = theme.symbols
    label = option.display
    if option.disabled:
        return f"{theme.gray(s.checkbox_inactive)} {theme.strikethrough(theme.gray(label))}"
    hint = hint_text(theme, option.hint) if active else ""
    if active and selected:
        return f"{theme.green(s.checkbox_selected)} {label}{hint}"
    if selected:
        return f"{theme.green(s.checkbox_selected)} {theme.dim(label)}"
    if active:
        return f"{theme.cyan(s.checkbox_active)} {label}{hint}"
    return f"{theme.dim(s.checkbox_inactive)} {theme.dim(label)}"


class MultiSelectBehavior(BaseBehavior):
    """Checkbox list.  ``space`` toggles, ``a`` toggles all, ``i`` inverts."""

    def __init__(
        self,
        options: list[Option[Any]],
        *,
        initial_values: Iterable[Any] = (),
        required: bool = True,
        cursor_at: Any = None,
        max_items: int | None = None,
    ) -> None:
        self.options = options
        self.required = required
        self.max_items = max_items
        wanted = list(initial_values)
        self._initial = [o.value for o in options if o.value in wanted and not o.disabled]
        start = index_of(options, cursor_at) if cursor_at is not None else None
        self._start = first_enabled(options, start or 0)

    @property
    def enabled_values(self) -> list[Any]:
        return [o.value for o in self.options if not o.disabled]

    def initial_value(self) -> list[Any]:
        return list(self._initial)

    def initial_cursor(self) -> int:
        return self._start

    def _ordered(self, values: Iterable[Any]) -> list[Any]:
        chosen = list(values)
        return [o.value for o in self.options if o.value in chosen]

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        char = key.char if key.is_printable else ""
        if action in ("up", "left"):
            prompt.cursor = find_cursor(prompt.cursor, -1, self.options)
        elif action in ("down", "right"):
            prompt.cursor = find_cursor(prompt.cursor, 1, self.options)
        elif action == "space":
            option = self.options[prompt.cursor]
            if not option.disabled:
                if option.value in prompt.value:
                    prompt.value = [v for v in prompt.value if v != option.value]
                else:
                    prompt.value = self._ordered([*prompt.value, option.value])
        elif char == "a":
            prompt.value = toggle_all(prompt.value, self.enabled_values)
        elif char == "i":
            prompt.value = invert(prompt.value, self.enabled_values)
        elif action == "enter":
            return "submit"
        return None

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult:
        if self.required and not value:
            return REQUIRED_MESSAGE
        return None

    def summary(self, prompt: Prompt) -> str:
        return ", ".join(o.display for o in self.options if o.value in prompt.value)

    def render(self, prompt: Prompt) -> str:
        theme = prompt.theme
        body = limit_options(
            self.options,
            prompt.cursor,
            lambda option, active: checkbox(
                theme, option, active=active, selected=option.value in prompt.value
            ),
            rows=prompt.rows,
            max_items=self.max_items,
            overflow=theme.dim("..."),
        )
        return compose(prompt, body, self.summary(prompt))


# ---------------------------------------------------------------------------
# Grouped
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GroupHeader:
    name: str


class GroupMultiSelectBehavior(MultiSelectBehavior):
    """Checkbox list under group headers; toggling a header toggles its children."""

    def __init__(
        self,
        groups: Mapping[str, Iterable[Any]],
        *,
        selectable_groups: bool = True,
        group_spacing: int = 0,
        **kwargs: Any,
    ) -> None:
        self.selectable_groups = selectable_groups
        self.group_spacing = group_spacing
        self.children: dict[str, list[Option[Any]]] = {}
        # flat index of each child -> (group name, is last child)
        self._placement: dict[int, tuple[str, bool]] = {}
        flat: list[Option[Any]] = []
        for name, items in groups.items():
            children = to_options(items, allow_empty=True)
            self.children[name] = children
            flat.append(Option(GroupHeader(name), label=name, disabled=not selectable_groups))
            for j, child in enumerate(children):
                self._placement[len(flat)] = (name, j == len(children) - 1)
                flat.append(child)
        if not any(self.children.values()):
            raise ValueError("at least one option is required")
        super().__init__(flat, **kwargs)

    @property
    def enabled_values(self) -> list[Any]:
        return [o.value for o in self.options if not o.disabled and not isinstance(o.value, GroupHeader)]

    def _group_values(self, name: str) -> list[Any]:
        return [o.value for o in self.children[name] if not o.disabled]

    def _group_selected(self, prompt: Prompt, name: str) -> bool:
        values = self._group_values(name)
        return bool(values) and all(v in prompt.value for v in values)

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        option = self.options[prompt.cursor]
        if action == "space" and isinstance(option.value, GroupHeader):
            if self.selectable_groups:
                name = option.value.name
                members = self._group_values(name)
                if self._group_selected(prompt, name):
                    prompt.value = [v for v in prompt.value if v not in members]
                else:
                    prompt.value = self._ordered([*prompt.value, *members])
            return None
        if key.is_printable and key.char in ("a", "i"):
            return None
        return super().handle_key(prompt, key, action)

    def summary(self, prompt: Prompt) -> str:
        return ", ".join(
            o.display
            for o in self.options
            if not isinstance(o.value, GroupHeader) and o.value in prompt.value
        )

    def render(self, prompt: Prompt) -> str:
        theme = prompt.theme
        s = theme.symbols
        body: list[str] = []
        for i, option in enumerate(self.options):
            active = i == prompt.cursor
            if isinstance(option.value, GroupHeader):
                if i > 0:
                    body.extend([""] * self.group_spacing)
                selected = self._group_selected(prompt, option.value.name)
                if not self.selectable_groups:
                    body.append(theme.dim(option.display))
                else:
                    body.append(checkbox(theme, option, active=active, selected=selected))
                continue
            _, is_last = self._placement[i]
            branch = theme.dim(s.bar_end if is_last else s.bar) + " " if self.selectable_groups else "  "
            body.append(branch + checkbox(theme, option, active=active, selected=option.value in prompt.value))
        return compose(prompt, body, self.summary(prompt))


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def multiselect(
    message: str,
    options: Iterable[Any],
    *,
    initial_values: Iterable[Any] = (),
    required: bool = True,
    cursor_at: Any = None,
    max_items: int | None = None,
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Pick any number of options.  Resolves to a list of values, or ``CANCEL``."""
    behavior = MultiSelectBehavior(
        to_options(options),
        initial_values=initial_values,
        required=required,
        cursor_at=cursor_at,
        max_items=max_items,
    )
    return Prompt(
        behavior,
        kind="multiselect",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )


def group_multiselect(
    message: str,
    options: Mapping[str, Iterable[Any]],
    *,
    initial_values: Iterable[Any] = (),
    required: bool = True,
    cursor_at: Any = None,
    selectable_groups: bool = True,
    group_spacing: int = 0,
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Pick options from named groups.  Resolves to a list of values, or ``CANCEL``."""
    behavior = GroupMultiSelectBehavior(
        options,
        selectable_groups=selectable_groups,
        group_spacing=group_spacing,
        initial_values=initial_values,
        required=required,
        cursor_at=cursor_at,
    )
    return Prompt(
        behavior,
        kind="group_multiselect",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )
