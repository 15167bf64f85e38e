"""One-shot output between prompts: log lines, session framing, notes and streams.

None of this reads input; each call writes a finished block to the
terminal and returns.  ``stream`` is the exception in that it writes while
it consumes an iterable, re-wrapping the line in progress at the live
terminal width.
"""

from __future__ import annotations

from typing import AsyncIterable, AsyncIterator, Callable, Iterable, Literal, Union

from pi.prompts.render import CLEAR_DOWN, cursor_up
from pi.prompts.settings import PromptSettings, get_settings
from pi.prompts.terminal import ProcessTerminal, Terminal
from pi.prompts.theme import Theme
from pi.prompts.utils import pad_to_width, truncate_to_width, visible_width, wrap_ansi

Chunks = Union[Iterable[str], AsyncIterable[str]]


def _setup(settings: PromptSettings | None, terminal: Terminal | None) -> tuple[Theme, Terminal]:
    theme = Theme(settings if settings is not None else get_settings())
    return theme, terminal if terminal is not None else ProcessTerminal()


def _block(
    theme: Theme, text: str, width: int, symbol: str, secondary: str, spacing: int
) -> list[str]:
    """Lead line plus *text* wrapped under *symbol*, continuation lines under *secondary*."""
    lines = [theme.gray(theme.symbols.bar)] if theme.settings.with_guide else []
    body = ["" for _ in range(spacing)]
    body.extend(wrap_ansi(text, max(width - 3, 1)))
    for i, line in enumerate(body):
        lead = symbol if i == 0 else secondary
        lines.append(f"{lead}  {line}" if line else lead)
    return lines


# ---------------------------------------------------------------------------
# log.*
# ---------------------------------------------------------------------------


def message(
    text: str = "",
    *,
    symbol: str | None = None,
    secondary_symbol: str | None = None,
    spacing: int = 0,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
) -> None:
    """Write *text* as a guide-prefixed block, wrapped to the terminal width."""
    theme, out = _setup(settings, terminal)
    bar = theme.gray(theme.symbols.bar) if theme.settings.with_guide else " "
    lines = _block(
        theme,
        text,
        out.columns,
        symbol if symbol is not None else bar,
        secondary_symbol if secondary_symbol is not None else bar,
        spacing,
    )
    out.write("\n".join(lines) + "\n")


def _with_symbol(pick: Callable[[Theme], str]) -> Callable[..., None]:
    def log_fn(
        text: str = "",
        *,
        settings: PromptSettings | None = None,
        terminal: Terminal | None = None,
        **kwargs: object,
    ) -> None:
        theme = Theme(settings if settings is not None else get_settings())
        message(text, symbol=pick(theme), settings=theme.settings, terminal=terminal, **kwargs)  # type: ignore[arg-type]

    return log_fn


info = _with_symbol(lambda t: t.blue(t.symbols.info))
success = _with_symbol(lambda t: t.green(t.symbols.success))
step = _with_symbol(lambda t: t.green(t.symbols.step_submit))
warn = _with_symbol(lambda t: t.yellow(t.symbols.warn))
warning = warn
error = _with_symbol(lambda t: t.red(t.symbols.error))


# ---------------------------------------------------------------------------
# Session framing
# ---------------------------------------------------------------------------


def intro(title: str = "", *, settings: PromptSettings | None = None, terminal: Terminal | None = None) -> None:
    theme, out = _setup(settings, terminal)
    out.write(f"{theme.gray(theme.symbols.bar_start)}  {title}\n")


def outro(text: str = "", *, settings: PromptSettings | None = None, terminal: Terminal | None = None) -> None:
    theme, out = _setup(settings, terminal)
    s = theme.symbols
    out.write(f"{theme.gray(s.bar)}\n{theme.gray(s.bar_end)}  {text}\n\n")


def cancel(text: str = "", *, settings: PromptSettings | None = None, terminal: Terminal | None = None) -> None:
    theme, out = _setup(settings, terminal)
    out.write(f"{theme.gray(theme.symbols.bar_end)}  {theme.red(text)}\n\n")


# ---------------------------------------------------------------------------
# Note and box
# ---------------------------------------------------------------------------


def note(
    text: str = "",
    title: str = "",
    *,
    format: Callable[[str], str] | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
) -> None:
    """A titled box around *text*, as wide as its widest wrapped line."""
    theme, out = _setup(settings, terminal)
    s = theme.symbols
    fmt = format or theme.dim
    guide = theme.settings.with_guide

    lines = ["", *(fmt(line) for line in wrap_ansi(text, max(out.columns - 6, 1), hard=True)), ""]
    title_width = visible_width(title)
    inner = max(max(visible_width(line) for line in lines), title_width) + 2

    rows = [theme.gray(s.bar)] if guide else []
    rows.append(
        f"{theme.green(s.step_submit)}  {title} "
        + theme.gray(s.bar_h * max(inner - title_width - 1, 1) + s.corner_top_right)
    )
    for line in lines:
        rows.append(f"{theme.gray(s.bar)}  {pad_to_width(line, inner)}{theme.gray(s.bar)}")
    corner = s.connect_left if guide else s.corner_bottom_left
    rows.append(theme.gray(corner + s.bar_h * (inner + 2) + s.corner_bottom_right))
    out.write("\n".join(rows) + "\n")


BoxAlign = Literal["left", "center", "right"]


def _align(width: int, inner: int, padding: int, align: BoxAlign) -> int:
    """Left padding that places a *width*-wide line in an *inner*-wide row."""
    if align == "center":
        return max((inner - width) // 2, 0)
    if align == "right":
        return max(inner - width - padding, 0)
    return padding


def box(
    text: str = "",
    title: str = "",
    *,
    content_align: BoxAlign = "left",
    title_align: BoxAlign = "left",
    width: float | Literal["auto"] = 1.0,
    title_padding: int = 1,
    content_padding: int = 2,
    format: Callable[[str], str] | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
) -> None:
    """A bordered box with *title* set into the top edge.

    *width* is a fraction of the terminal width, or ``"auto"`` to shrink the
    box around its longest line.  Over-long titles are truncated.
    """
    theme, out = _setup(settings, terminal)
    s = theme.symbols
    guide = theme.settings.with_guide
    columns = out.columns - (3 if guide else 0)

    if width == "auto":
        longest = max(visible_width(line) for line in text.split("\n"))
        wanted = max(longest + content_padding * 2, visible_width(title) + title_padding * 2)
        box_width = min(columns, wanted + 2)
    else:
        box_width = int(columns * width)
        # Fractional widths round down to an even column count
        box_width -= box_width % 2
    inner = max(box_width - 2, 1)

    title = truncate_to_width(title, inner - title_padding * 2)
    title_width = visible_width(title)
    left = _align(title_width, inner, title_padding, title_align)
    right = max(inner - left - title_width, 0)
    rows = [theme.gray(s.bar)] if guide else []
    rows.append(
        theme.gray(s.corner_top_left + s.bar_h * left)
        + title
        + theme.gray(s.bar_h * right + s.corner_top_right)
    )

    fmt = format or (lambda line: line)
    for line in wrap_ansi(text, max(inner - content_padding * 2, 1), hard=True):
        pad = _align(visible_width(line), inner, content_padding, content_align)
        body = pad_to_width(" " * pad + fmt(line), inner)
        rows.append(f"{theme.gray(s.bar)}{body}{theme.gray(s.bar)}")
    rows.append(theme.gray(s.corner_bottom_left + s.bar_h * inner + s.corner_bottom_right))

    if guide:
        bar = theme.gray(s.bar)
        rows = rows[:1] + [f"{bar}  {row}" for row in rows[1:]]
    out.write("\n".join(rows) + "\n")


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------


async def _chunks(source: Chunks) -> AsyncIterator[str]:
    if hasattr(source, "__aiter__"):
        async for chunk in source:  # type: ignore[union-attr]
            yield chunk
    else:
        for chunk in source:  # type: ignore[union-attr]
            yield chunk


class _Stream:
    """``log``-style blocks fed from a (possibly async) iterable of chunks."""

    async def message(
        self,
        source: Chunks,
        *,
        symbol: str | None = None,
        settings: PromptSettings | None = None,
        terminal: Terminal | None = None,
    ) -> None:
        theme, out = _setup(settings, terminal)
        bar = theme.gray(theme.symbols.bar) if theme.settings.with_guide else " "
        lead = symbol if symbol is not None else bar
        if theme.settings.with_guide:
            out.write(f"{bar}\n")

        line = ""  # text since the last newline
        painted = 0  # rows the line currently occupies
        first_line = True

        def paint() -> int:
            wrapped = wrap_ansi(line, max(out.columns - 3, 1)) or [""]
            rows = []
            for i, row in enumerate(wrapped):
                prefix = lead if first_line and i == 0 else bar
                rows.append(f"{prefix}  {row}")
            erase = cursor_up(painted - 1) + "\r" + CLEAR_DOWN if painted else ""
            out.write(erase + "\n".join(rows))
            return len(rows)

        async for chunk in _chunks(source):
            parts = chunk.split("\n")
            for i, part in enumerate(parts):
                if i > 0:
                    out.write("\n")
                    line, painted, first_line = "", 0, False
                line += part
                if part or i > 0:
                    painted = paint()
        out.write("\n")

    async def _symbol(self, pick: Callable[[Theme], str], source: Chunks, **kwargs: object) -> None:
        settings = kwargs.pop("settings", None)
        theme = Theme(settings if isinstance(settings, PromptSettings) else get_settings())
        await self.message(source, symbol=pick(theme), settings=theme.settings, **kwargs)  # type: ignore[arg-type]

    async def info(self, source: Chunks, **kwargs: object) -> None:
        await self._symbol(lambda t: t.blue(t.symbols.info), source, **kwargs)

    async def success(self, source: Chunks, **kwargs: object) -> None:
        await self._symbol(lambda t: t.green(t.symbols.success), source, **kwargs)

    async def step(self, source: Chunks, **kwargs: object) -> None:
        await self._symbol(lambda t: t.green(t.symbols.step_submit), source, **kwargs)

    async def warn(self, source: Chunks, **kwargs: object) -> None:
        await self._symbol(lambda t: t.yellow(t.symbols.warn), source, **kwargs)

    warning = warn

    async def error(self, source: Chunks, **kwargs: object) -> None:
        await self._symbol(lambda t: t.red(t.symbols.error), source, **kwargs)


stream = _Stream()
