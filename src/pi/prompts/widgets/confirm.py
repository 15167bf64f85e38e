"""Yes/no confirmation."""

from __future__ import annotations

from pi.prompts.cancellation import CancellationToken
from pi.prompts.keys import KeyEvent
from pi.prompts.prompt import BaseBehavior, KeyOutcome, Prompt
from pi.prompts.settings import Action, PromptSettings
from pi.prompts.terminal import Terminal
from pi.prompts.widgets.common import compose, prompt_kwargs


class ConfirmBehavior(BaseBehavior):
    """``y``/``n`` answer at once; arrows flip the choice; return submits it."""

    def __init__(self, *, active: str = "Yes", inactive: str = "No", initial_value: bool = True) -> None:
        self.active = active
        self.inactive = inactive
        self._initial = bool(initial_value)

    def initial_value(self) -> bool:
        return self._initial

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        name = key.name.lower() if key.is_printable else ""
        if name == "y":
            prompt.value = True
            return "submit"
        if name == "n":
            prompt.value = False
            return "submit"
        if action in ("up", "down", "left", "right"):
            prompt.value = not prompt.value
            return None
        if action == "enter":
            return "submit"
        return None

    def render(self, prompt: Prompt) -> str:
        theme = prompt.theme
        s = theme.symbols

        def choice(label: str, selected: bool) -> str:
            if selected:
                return f"{theme.green(s.radio_active)} {label}"
            return f"{theme.dim(s.radio_inactive)} {theme.dim(label)}"

        line = f"{choice(self.active, prompt.value)} {theme.dim('/')} {choice(self.inactive, not prompt.value)}"
        summary = self.active if prompt.value else self.inactive
        return compose(prompt, [line], summary)


def confirm(
    message: str,
    *,
    active: str = "Yes",
    inactive: str = "No",
    initial_value: bool = True,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Ask a yes/no question.  Resolves to ``True``/``False``, or ``CANCEL``."""
    return Prompt(
        ConfirmBehavior(active=active, inactive=inactive, initial_value=initial_value),
        kind="confirm",
        **prompt_kwargs(message=message, settings=settings, terminal=terminal, signal=signal),
    )
