"""File system path picker: a directory tree browsed with the arrow keys."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from pi.prompts.cancellation import CancellationToken
from pi.prompts.keys import KeyEvent
from pi.prompts.prompt import BaseBehavior, KeyOutcome, Prompt, ValidationResult, Validator
from pi.prompts.settings import Action, PromptSettings
from pi.prompts.terminal import Terminal
from pi.prompts.widgets.common import compose, prompt_kwargs
from pi.prompts.widgets.options import limit_options

logger = logging.getLogger(__name__)

NO_PATH_MESSAGE = "Please select a path"


@dataclass(frozen=True)
class Entry:
    name: str
    is_dir: bool


def list_dir(path: str, *, only_directories: bool = False) -> list[Entry]:
    """Entries of *path*, directories first, each group sorted by name.

    An unreadable directory lists as empty.
    """
    try:
        scanned = list(os.scandir(path))
    except OSError as e:
        logger.debug("cannot list %s: %s", path, e)
        return []

    entries = []
    for item in scanned:
        # Follow symlinks so a link to a directory can be entered
        is_dir = item.is_dir(follow_symlinks=False) or (item.is_symlink() and os.path.isdir(item.path))
        if only_directories and not is_dir:
            continue
        entries.append(Entry(item.name, is_dir))
    entries.sort(key=lambda e: (not e.is_dir, e.name.lower()))
    return entries


@dataclass(frozen=True)
class _Row:
    depth: int
    entry: Entry


class PathBehavior(BaseBehavior):
    """Browse from *root*.

    ``up``/``down`` move within the open directory, ``right`` opens the
    highlighted directory and ``left`` closes the innermost one, or moves
    the root to its parent when nothing is open.
    """

    def __init__(self, *, root: str | None = None, only_directories: bool = False, max_items: int | None = None) -> None:
        self.only_directories = only_directories
        self.max_items = max_items
        self.root = os.path.abspath(root if root is not None else os.getcwd())
        # levels[d] lists the directory opened at depth d; trail[d] is the cursor in it
        self.levels: list[list[Entry]] = [self._list(self.root)]
        self.trail: list[int] = [0]

    def _list(self, path: str) -> list[Entry]:
        return list_dir(path, only_directories=self.only_directories)

    @property
    def selected_path(self) -> str | None:
        parts = []
        for entries, index in zip(self.levels, self.trail):
            if not entries:
                return os.path.join(self.root, *parts) if parts else None
            parts.append(entries[index].name)
        return os.path.join(self.root, *parts)

    def _current(self) -> Entry | None:
        entries = self.levels[-1]
        return entries[self.trail[-1]] if entries else None

    def initial_value(self) -> str | None:
        return self.selected_path

    def handle_key(self, prompt: Prompt, key: KeyEvent, action: Action | None) -> KeyOutcome:
        entries = self.levels[-1]
        if action in ("up", "down") and entries:
            step = -1 if action == "up" else 1
            self.trail[-1] = (self.trail[-1] + step) % len(entries)
        elif action == "right":
            current = self._current()
            if current is not None and current.is_dir:
                children = self._list(self.selected_path or self.root)
                if children:
                    self.levels.append(children)
                    self.trail.append(0)
        elif action == "left":
            if len(self.levels) > 1:
                self.levels.pop()
                self.trail.pop()
            else:
                self._ascend()
        elif action == "enter":
            return "submit"
        prompt.value = self.selected_path
        return None

    def _ascend(self) -> None:
        parent = os.path.dirname(self.root)
        if parent == self.root:
            return
        previous = os.path.basename(self.root)
        self.root = parent
        self.levels = [self._list(parent)]
        names = [e.name for e in self.levels[0]]
        self.trail = [names.index(previous) if previous in names else 0]
        logger.debug("path root moved up to %s", parent)

    def validate(self, prompt: Prompt, value: Any) -> ValidationResult:
        if not value:
            return NO_PATH_MESSAGE
        return None

    def _rows(self) -> tuple[list[_Row], int]:
        """The open part of the tree, flattened, and the row of the highlight."""
        rows: list[_Row] = []
        cursor = 0

        def walk(depth: int) -> None:
            nonlocal cursor
            for i, entry in enumerate(self.levels[depth]):
                on_trail = i == self.trail[depth]
                if on_trail and depth == len(self.levels) - 1:
                    cursor = len(rows)
                rows.append(_Row(depth, entry))
                if on_trail and depth + 1 < len(self.levels):
                    walk(depth + 1)

        walk(0)
        return rows, cursor

    def render(self, prompt: Prompt) -> str:
        theme = prompt.theme
        s = theme.symbols
        rows, cursor = self._rows()

        def style(row: _Row, active: bool) -> str:
            name = row.entry.name + ("/" if row.entry.is_dir else "")
            indent = "  " * row.depth
            if active:
                return f"{indent}{theme.green(s.radio_active)} {name}"
            return f"{indent}{theme.dim(s.radio_inactive)} {theme.dim(name)}"

        body = [theme.dim(self.root)]
        if rows:
            body.extend(
                limit_options(
                    rows,
                    cursor,
                    style,
                    rows=prompt.rows - 1,
                    max_items=self.max_items,
                    overflow=theme.dim("..."),
                )
            )
        else:
            body.append(theme.dim("(empty)"))
        return compose(prompt, body, prompt.value or "")


def path(
    message: str,
    *,
    root: str | None = None,
    only_directories: bool = False,
    max_items: int | None = None,
    validate: Validator | None = None,
    settings: PromptSettings | None = None,
    terminal: Terminal | None = None,
    signal: CancellationToken | None = None,
) -> Prompt:
    """Pick a file or directory under *root* (default: the working directory).

    Resolves to an absolute path string, or ``CANCEL``.
    """
    return Prompt(
        PathBehavior(root=root, only_directories=only_directories, max_items=max_items),
        kind="path",
        **prompt_kwargs(
            message=message, validate=validate, settings=settings, terminal=terminal, signal=signal
        ),
    )
