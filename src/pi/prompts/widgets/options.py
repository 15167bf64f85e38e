"""Option lists: normalisation, cursor movement and the sliding window."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Mapping, Sequence, TypeVar

T = TypeVar("T")
ItemT = TypeVar("ItemT")

# Rows kept between the cursor and the window edges while scrolling
WINDOW_MARGIN_TOP = 2
WINDOW_MARGIN_BOTTOM = 3
# Never show fewer option rows than this, whatever max_items says
MIN_VISIBLE_ITEMS = 5
# Rows reserved for the header and footer around the list
RESERVED_ROWS = 4


@dataclass(frozen=True)
class Option(Generic[T]):
    value: T
    label: str | None = None
    hint: str | None = None
    disabled: bool = False

    @property
    def display(self) -> str:
        return self.label if self.label is not None else str(self.value)


def to_option(item: Any) -> Option[Any]:
    """Accept an :class:`Option`, a ``{"value": ..., "label": ...}`` mapping or a bare value."""
    if isinstance(item, Option):
        return item
    if isinstance(item, Mapping) and "value" in item:
        return Option(
            value=item["value"],
            label=item.get("label"),
            hint=item.get("hint"),
            disabled=bool(item.get("disabled", False)),
        )
    return Option(value=item)


def to_options(items: Iterable[Any], *, allow_empty: bool = False) -> list[Option[Any]]:
    options = [to_option(item) for item in items]
    if not options and not allow_empty:
        raise ValueError("at least one option is required")
    return options


def find_cursor(cursor: int, delta: int, options: Sequence[Option[Any]]) -> int:
    """Move *cursor* by *delta*, wrapping and skipping disabled options.

    Stops after one full lap, so an all-disabled list leaves the cursor put.
    """
    count = len(options)
    if count == 0:
        return cursor
    index = cursor
    for _ in range(count):
        index = (index + delta) % count
        if not options[index].disabled:
            return index
    return cursor


def first_enabled(options: Sequence[Option[Any]], start: int = 0) -> int:
    """The first enabled index at or after *start* (wrapping), or *start* if none."""
    if not options:
        return 0
    start %= len(options)
    if not options[start].disabled:
        return start
    return find_cursor(start, 1, options)


def index_of(options: Sequence[Option[Any]], value: Any) -> int | None:
    for i, option in enumerate(options):
        if option.value == value:
            return i
    return None


def visible_count(max_items: int | None, rows: int) -> int:
    """Option rows to show: what fits and was asked for, but never under the minimum."""
    requested = max_items if max_items is not None else float("inf")
    return int(max(min(rows - RESERVED_ROWS, requested), MIN_VISIBLE_ITEMS))


def window_start(cursor: int, count: int, visible: int) -> int:
    """First option index of the visible window for *cursor*."""
    start = 0
    if cursor >= start + visible - WINDOW_MARGIN_BOTTOM:
        start = max(min(cursor - visible + WINDOW_MARGIN_BOTTOM, count - visible), 0)
    elif cursor < start + WINDOW_MARGIN_TOP:
        start = max(cursor - WINDOW_MARGIN_TOP, 0)
    return start


def limit_options(
    options: Sequence[ItemT],
    cursor: int,
    style: Callable[[ItemT, bool], str],
    *,
    rows: int,
    max_items: int | None = None,
    overflow: str = "...",
) -> list[str]:
    """Render the window of *options* around *cursor*.

    When the list is longer than the window, the first and/or last visible
    row is replaced by *overflow* to show that more options exist that way.
    """
    visible = visible_count(max_items, rows)
    start = window_start(cursor, len(options), visible)
    clipped = visible < len(options)
    show_top = clipped and start > 0
    show_bottom = clipped and start + visible < len(options)

    window = options[start : start + visible]
    lines: list[str] = []
    for i, option in enumerate(window):
        if (i == 0 and show_top) or (i == len(window) - 1 and show_bottom):
            lines.append(overflow)
        else:
            lines.append(style(option, start + i == cursor))
    return lines
