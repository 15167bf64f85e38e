"""Frame layout shared by the widgets.

Every prompt frame has the same shape::

    │
    ◆  Message
    │  body line
    │  body line
    └  (error message, when in the error state)

Submitted and cancelled prompts collapse to the header plus a one-line
summary of the answer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pi.prompts.settings import PromptSettings
from pi.prompts.terminal import Terminal
from pi.prompts.utils import wrap_ansi

if TYPE_CHECKING:
    from pi.prompts.cancellation import CancellationToken
    from pi.prompts.prompt import Prompt, Validator
    from pi.prompts.theme import Theme

GUIDE_GAP = "  "


def prompt_kwargs(
    *,
    message: str,
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> dict[str, Any]:
    """Collect the keyword arguments every factory forwards to :class:`Prompt`."""
    return {
        "message": message,
        "validate": validate,
        "settings": settings,
        "terminal": terminal,
        "signal": signal,
    }


def header(prompt: Prompt) -> list[str]:
    theme = prompt.theme
    symbol = theme.state_symbol(prompt.state)
    width = max(prompt.columns - 3, 1)
    message_lines = wrap_ansi(prompt.message, width, hard=True) if prompt.message else [""]
    if not theme.settings.with_guide:
        return [f"{symbol}  {message_lines[0]}", *(f"   {line}" for line in message_lines[1:])]

    bar = theme.guide(prompt.state)
    lines = [theme.gray(theme.symbols.bar), f"{symbol}  {message_lines[0]}"]
    lines.extend(f"{bar}  {line}" for line in message_lines[1:])
    return lines


def body_prefix(prompt: Prompt) -> str:
    bar = prompt.theme.guide(prompt.state)
    return f"{bar}{GUIDE_GAP}" if bar else ""


def compose(prompt: Prompt, body: list[str], summary: str = "") -> str:
    """Assemble a full frame for the prompt's current state.

    *body* is shown while the prompt is interactive; *summary* replaces it
    once the prompt is submitted or cancelled.
    """
    theme = prompt.theme
    lines = header(prompt)
    prefix = body_prefix(prompt)
    state = prompt.state

    if state == "submit":
        if summary:
            lines.extend(f"{prefix}{theme.dim(part)}" for part in summary.split("\n"))
        elif prefix:
            lines.append(prefix.rstrip())
        return "\n".join(lines)

    if state == "cancel":
        if summary:
            lines.extend(
                f"{prefix}{theme.strikethrough(theme.dim(part))}" for part in summary.split("\n")
            )
        if prefix:
            lines.append(prefix.rstrip())
        return "\n".join(lines)

    lines.extend(f"{prefix}{line}" for line in body)
    end = theme.state_color(state)(theme.symbols.bar_end) if theme.settings.with_guide else ""
    if state == "error" and prompt.error:
        error_text = theme.yellow(prompt.error)
        lines.append(f"{end}{GUIDE_GAP}{error_text}" if end else error_text)
    elif end:
        lines.append(end)
    return "\n".join(lines)


def hint_text(theme: Theme, hint: str | None) -> str:
    """`` (hint)`` dimmed, or nothing."""
    if not hint:
        return ""
    return " " + theme.dim(f"({hint})")
