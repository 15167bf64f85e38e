"""Colours and symbols used by the widget renderers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from pi.prompts.settings import PromptSettings

StyleFn = Callable[[str], str]


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Symbols:
    step_active: str
    step_cancel: str
    step_error: str
    step_submit: str
    bar_start: str
    bar: str
    bar_end: str
    radio_active: str
    radio_inactive: str
    checkbox_active: str
    checkbox_selected: str
    checkbox_inactive: str
    password_mask: str
    bar_h: str
    corner_top_left: str
    corner_top_right: str
    connect_left: str
    corner_bottom_left: str
    corner_bottom_right: str
    info: str
    success: str
    warn: str
    error: str
    spinner_frames: tuple[str, ...]
    spinner_delay: float
    progress_light: str
    progress_heavy: str
    progress_block: str


UNICODE_SYMBOLS = Symbols(
    step_active="◆",
    step_cancel="■",
    step_error="▲",
    step_submit="◇",
    bar_start="┌",
    bar="│",
    bar_end="└",
    radio_active="●",
    radio_inactive="○",
    checkbox_active="◻",
    checkbox_selected="◼",
    checkbox_inactive="◻",
    password_mask="▪",
    bar_h="─",
    corner_top_left="╭",
    corner_top_right="╮",
    connect_left="├",
    corner_bottom_left="╰",
    corner_bottom_right="╯",
    info="●",
    success="◆",
    warn="▲",
    error="■",
    spinner_frames=("◒", "◐", "◓", "◑"),
    spinner_delay=0.08,
    progress_light="─",
    progress_heavy="━",
    progress_block="█",
)

ASCII_SYMBOLS = Symbols(
    step_active="*",
    step_cancel="x",
    step_error="x",
    step_submit="o",
    bar_start="T",
    bar="|",
    bar_end="—",
    radio_active=">",
    radio_inactive=" ",
    checkbox_active="[•]",
    checkbox_selected="[+]",
    checkbox_inactive="[ ]",
    password_mask="•",
    bar_h="-",
    corner_top_left="+",
    corner_top_right="+",
    connect_left="+",
    corner_bottom_left="+",
    corner_bottom_right="+",
    info="•",
    success="*",
    warn="!",
    error="x",
    spinner_frames=("•", "o", "O", "0"),
    spinner_delay=0.12,
    progress_light="-",
    progress_heavy="=",
    progress_block="#",
)


# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------

_SGR: dict[str, tuple[int, int]] = {
    "bold": (1, 22),
    "dim": (2, 22),
    "italic": (3, 23),
    "underline": (4, 24),
    "inverse": (7, 27),
    "hidden": (8, 28),
    "strikethrough": (9, 29),
    "red": (31, 39),
    "green": (32, 39),
    "yellow": (33, 39),
    "blue": (34, 39),
    "magenta": (35, 39),
    "cyan": (36, 39),
    "gray": (90, 39),
    "bg_white": (47, 49),
}


def _sgr(open_code: int, close_code: int) -> StyleFn:
    def apply(text: str) -> str:
        return f"\x1b[{open_code}m{text}\x1b[{close_code}m" if text else text

    return apply


def _plain(text: str) -> str:
    return text


class Theme:
    """Style functions and symbols for one :class:`PromptSettings`.

    With colour disabled every style function is the identity, which keeps
    rendered frames plain text.
    """

    def __init__(self, settings: PromptSettings) -> None:
        self.settings = settings
        self.symbols = UNICODE_SYMBOLS if settings.unicode else ASCII_SYMBOLS
        for name, (open_code, close_code) in _SGR.items():
            setattr(self, name, _sgr(open_code, close_code) if settings.color else _plain)

    # Populated in __init__; declared for type checkers
    bold: StyleFn
    dim: StyleFn
    italic: StyleFn
    underline: StyleFn
    inverse: StyleFn
    hidden: StyleFn
    strikethrough: StyleFn
    red: StyleFn
    green: StyleFn
    yellow: StyleFn
    blue: StyleFn
    magenta: StyleFn
    cyan: StyleFn
    gray: StyleFn
    bg_white: StyleFn

    def state_symbol(self, state: str) -> str:
        """The coloured header glyph for a prompt in *state*."""
        s = self.symbols
        if state in ("initial", "active", "validate"):
            return self.cyan(s.step_active)
        if state == "cancel":
            return self.red(s.step_cancel)
        if state == "error":
            return self.yellow(s.step_error)
        if state == "submit":
            return self.green(s.step_submit)
        return self.cyan(s.step_active)

    def state_color(self, state: str) -> StyleFn:
        if state == "error":
            return self.yellow
        if state in ("submit", "cancel"):
            return self.gray
        return self.cyan

    def guide(self, state: str = "active") -> str:
        """The left guide bar, coloured for *state*."""
        if not self.settings.with_guide:
            return ""
        return self.state_color(state)(self.symbols.bar)

    def inverse_cursor(self, char: str) -> str:
        """Render a fake block cursor over *char*."""
        if self.settings.color:
            return self.inverse(char or " ")
        return "_" if not char else char
