"""Date entry with fixed year/month/day segments."""

from __future__ import annotations

import calendar
import datetime
from dataclasses import dataclass
from typing import Any, Literal

from pi.prompts.cancellation import CancellationToken
from pi.prompts.keys import KeyEvent
from pi.prompts.prompt import BaseBehavior, KeyOutcome, Prompt, ValidationResult, Validator
from pi.prompts.settings import Action, PromptSettings
from pi.prompts.terminal import Terminal
from pi.prompts.widgets.common import compose, prompt_kwargs

SegmentKind = Literal["year", "month", "day"]

DATE_FORMATS: dict[str, tuple[SegmentKind, SegmentKind, SegmentKind]] = {
    "YYYY/MM/DD": ("year", "month", "day"),
    "MM/DD/YYYY": ("month", "day", "year"),
    "DD/MM/YYYY": ("day", "month", "year"),
}
_WIDTHS = {"year": 4, "month": 2, "day": 2}
_BLANK = "_"

INVALID_DATE_MESSAGE = "Please enter a valid date"
MONTHS_MESSAGE = "There are only 12 months in a year"

YEAR_MIN = 1000
YEAR_MAX = 9999


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    start: int
    length: int

    def slice(self, display: str) -> str:
        return display[self.start : self.start + self.length]

    def replace(self, display: str, text: str) -> str:
        return display[: self.start] + text + display[self.start + self.length :]


def layout(format: str) -> list[Segment]:
    """The segments of *format* with their offsets in the display string."""
    try:
        kinds = DATE_FORMATS[format]
    except KeyError:
        raise ValueError(f"unknown date format {format!r}, expected one of {sorted(DATE_FORMATS)}") from None
    segments = []
    start = 0
    for kind in kinds:
        segments.append(Segment(kind, start, _WIDTHS[kind]))
        start += _WIDTHS[kind] + 1
    return segments


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year or 2000, min(max(month, 1), 12))[1]


def parts_of(display: str, segments: list[Segment]) -> dict[str, int]:
    """Segment values, with blanks read as zero."""
    return {s.kind: int(s.slice(display).replace(_BLANK, "0") or 0) for s in segments}


def format_date(value: datetime.date, segments: list[Segment]) -> str:
    fields = {"year": f"{value.year:04d}", "month": f"{value.month:02d}", "day": f"{value.day:02d}"}
    return "/".join(fields[s.kind] for s in segments)


def to_date(display: str, segments: list[Segment]) -> datetime.date | None:
    """The date the display string spells, or None if it is incomplete or impossible."""
    if _BLANK in display:
        return None
    p = parts_of(display, segments)
    if not YEAR_MIN <= p["year"] <= YEAR_MAX or not 1 <= p["month"] <= 12:
        return None
    if not 1 <= p["day"] <= days_in_month(p["year"], p["month"]):
        return None
    return datetime.date(p["year"], p["month"], p["day"])


def segment_message(display: str, segment: Segment, segments: list[Segment]) -> str:
    """Why a just-completed segment cannot be accepted, or empty if it can."""
    p = parts_of(display, segments)
    if segment.kind == "month" and not 1 <= p["month"] <= 12:
        return MONTHS_MESSAGE
    if segment.kind == "day" and p["day"] >= 1:
        limit = days_in_month(p["year"], p["month"])
        if p["day"] > limit:
            name = calendar.month_name[p["month"]] if 1 <= p["month"] <= 12 else "this month"
            return f"There are only {limit} days in {name}"
    return ""


class DateBehavior(BaseBehavior):
    """Digit-by-digit segment editing.

    Digits fill the current segment left to right and jump to the next one
    when it is full; backspace blanks the whole segment; up/down step the
    segment, clamping the day to the length of the month.
    """

    def __init__(
        self,
        *,
        format: str = "YYYY/MM/DD",
        initial_value: datetime.date | None = None,
        default_value: datetime.date | None = None,
        min_date: datetime.date | None = None,
        max_date: datetime.date | None = None,
    ) -> None:
        self.segments = layout(format)
        self.format = format
        self.default_value = default_value
        self.min_date = min_date
        self.max_date = max_date
        self.template = "/".join(_BLANK * s.length for s in self.segments)
        start = initial_value if initial_value is not None else default_value
        self.display = format_date(start, self.segments) if start is not None else self.template
        self.inline_error = ""

    def initial_value(self) -> datetime.date | None:
        return to_date(self.display, self.segments)

    def initial_cursor(self) -> int:
        return self.segments[0].start

    def segment_at(self, cursor: int) -> int:
        for i, segment in enumerate(self.segments):
            if cursor < segment.start + segment.length:
                return i
        return len(self.segments) - 1

    def _set_display(self, prompt: Prompt, display: str) -> None:
        self.display = display
        prompt.value = to_date(display, self.segments)

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        index = self.segment_at(prompt.cursor)
        segment = self.segments[index]

        if action in ("left", "right"):
            self.inline_error = ""
            delta = -1 if action == "left" else 1
            pos = prompt.cursor - segment.start + delta
            if 0 <= pos < segment.length:
                prompt.cursor = segment.start + pos
            else:
                index = min(max(index + delta, 0), len(self.segments) - 1)
                prompt.cursor = self.segments[index].start
        elif action in ("up", "down"):
            self.inline_error = ""
            self._step(prompt, segment, 1 if action == "up" else -1)
        elif key.key_id in ("backspace", "delete"):
            self.inline_error = ""
            if segment.slice(self.display).strip(_BLANK):
                self._set_display(prompt, segment.replace(self.display, _BLANK * segment.length))
            prompt.cursor = segment.start
        elif key.is_printable and key.char.isdigit() and len(key.char) == 1:
            self._type_digit(prompt, index, key.char)
        elif action == "enter":
            return "submit"
        return None

    def _step(self, prompt: Prompt, segment: Segment, delta: int) -> None:
        p = parts_of(self.display, self.segments)
        if segment.kind == "year":
            p["year"] = min(max(p["year"] + delta, YEAR_MIN), YEAR_MAX) if p["year"] else YEAR_MIN
        elif segment.kind == "month":
            p["month"] = min(max(p["month"] + delta, 1), 12)
        else:
            p["day"] = p["day"] + delta
        p["year"] = p["year"] or YEAR_MIN
        p["month"] = p["month"] or 1
        p["day"] = min(max(p["day"], 1), days_in_month(p["year"], p["month"]))
        value = datetime.date(p["year"], p["month"], p["day"])
        self._set_display(prompt, format_date(value, self.segments))

    def _type_digit(self, prompt: Prompt, index: int, digit: str) -> None:
        segment = self.segments[index]
        current = segment.slice(self.display)
        first_blank = current.find(_BLANK)
        pos = first_blank if first_blank >= 0 else min(prompt.cursor - segment.start, segment.length - 1)
        updated = current[:pos] + digit + current[pos + 1 :]
        display = segment.replace(self.display, updated)

        if _BLANK not in updated:
            message = segment_message(display, segment, self.segments)
            if message:
                self.inline_error = message
                return
        self.inline_error = ""
        self._set_display(prompt, display)

        next_blank = updated.find(_BLANK)
        if next_blank >= 0:
            prompt.cursor = segment.start + next_blank
        elif first_blank >= 0 and index < len(self.segments) - 1:
            prompt.cursor = self.segments[index + 1].start
        else:
            prompt.cursor = segment.start + min(pos + 1, segment.length - 1)

    def submit_value(self, prompt: Prompt) -> datetime.date | None:
        value = to_date(self.display, self.segments)
        return value if value is not None else self.default_value

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult:
        if value is None:
            return INVALID_DATE_MESSAGE
        if self.min_date is not None and value < self.min_date:
            return f"Date must be on or after {format_date(self.min_date, self.segments)}"
        if self.max_date is not None and value > self.max_date:
            return f"Date must be on or before {format_date(self.max_date, self.segments)}"
        return None

    def input_line(self, prompt: Prompt) -> str:
        theme = prompt.theme
        out = []
        for i, ch in enumerate(self.display):
            if i == prompt.cursor:
                out.append(theme.inverse_cursor("" if ch == _BLANK else ch))
            elif ch == "/":
                out.append(theme.gray(ch))
            else:
                out.append(ch)
        return "".join(out)

    def render(self, prompt: Prompt) -> str:
        body = [self.input_line(prompt)]
        if self.inline_error and not prompt.done:
            body.append(prompt.theme.yellow(self.inline_error))
        value = prompt.value if prompt.state == "submit" else to_date(self.display, self.segments)
        summary = format_date(value, self.segments) if value is not None else ""
        return compose(prompt, body, summary)


def date(
    message: str,
    *,
    format: str = "YYYY/MM/DD",
    initial_value: datetime.date | None = None,
    default_value: datetime.date | None = None,
    min_date: datetime.date | None = None,
    max_date: datetime.date | None = None,
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Ask for a calendar date.  Resolves to a :class:`datetime.date`, or ``CANCEL``.

    Raises ``ValueError`` for an unknown *format* or when *min_date* is
    after *max_date*.
    """
    if min_date is not None and max_date is not None and min_date > max_date:
        raise ValueError(f"min_date ({min_date}) must not be after max_date ({max_date})")
    behavior = DateBehavior(
        format=format,
        initial_value=initial_value,
        default_value=default_value,
        min_date=min_date,
        max_date=max_date,
    )
    return Prompt(
        behavior,
        kind="date",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )
