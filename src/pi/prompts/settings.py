"""Prompt settings and key-to-action resolution.

A :class:`PromptSettings` value is immutable.  The process default is built
once from the environment by :func:`get_settings`; callers that need
something different derive a copy with :meth:`PromptSettings.replace` or
:meth:`PromptSettings.with_aliases` and pass it to the widget factory.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from typing import Literal, Mapping

from pi.prompts.keys import KeyEvent, KeyId

Action = Literal["up", "down", "left", "right", "space", "enter", "cancel"]

ACTIONS: tuple[Action, ...] = ("up", "down", "left", "right", "space", "enter", "cancel")

# Keys that trigger an action on their own, before aliases are consulted
DEFAULT_KEY_ACTIONS: dict[KeyId, Action] = {
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "space": "space",
    "return": "enter",
}

DEFAULT_ALIASES: dict[KeyId, Action] = {
    "k": "up",
    "j": "down",
    "h": "left",
    "l": "right",
    "escape": "cancel",
    "ctrl+c": "cancel",
}

DEFAULT_CANCEL_MESSAGE = "Canceled"
DEFAULT_ERROR_MESSAGE = "Something went wrong"


@dataclass(frozen=True)
class PromptSettings:
    """Immutable configuration shared by every widget."""

    aliases: Mapping[KeyId, Action] = field(default_factory=lambda: dict(DEFAULT_ALIASES))
    cancel_message: str = DEFAULT_CANCEL_MESSAGE
    error_message: str = DEFAULT_ERROR_MESSAGE
    with_guide: bool = True
    unicode: bool = True
    ci: bool = False
    color: bool = True

    def replace(self, **changes: object) -> PromptSettings:
        return dataclasses.replace(self, **changes)

    def with_aliases(self, aliases: Mapping[KeyId, Action | None]) -> PromptSettings:
        """Return a copy with *aliases* merged in; a ``None`` action removes a key."""
        merged = dict(self.aliases)
        for key, action in aliases.items():
            if action is None:
                merged.pop(key, None)
            elif action not in ACTIONS:
                raise ValueError(f"unknown action {action!r} for key {key!r}")
            else:
                merged[key] = action
        return self.replace(aliases=merged)

    def keys_for(self, action: Action) -> list[KeyId]:
        """Every key id that resolves to *action*."""
        keys = [k for k, a in DEFAULT_KEY_ACTIONS.items() if a == action]
        keys.extend(k for k, a in self.aliases.items() if a == action and k not in keys)
        return keys

    def resolve(self, key: KeyEvent, *, tracks_text: bool = False) -> Action | None:
        """Map *key* to an action.

        Widgets that edit text pass ``tracks_text=True`` so printable aliases
        (``k``, ``j``...) are typed rather than treated as navigation.
        """
        key_id = key.key_id
        action = DEFAULT_KEY_ACTIONS.get(key_id)
        if action is not None:
            if tracks_text and action == "space":
                return None
            return action
        if tracks_text and key.is_printable:
            return None
        return self.aliases.get(key_id)


# ---------------------------------------------------------------------------
# Process default
# ---------------------------------------------------------------------------


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def settings_from_env(environ: Mapping[str, str] | None = None) -> PromptSettings:
    """Build settings from environment variables (``os.environ`` by default)."""
    env = os.environ if environ is None else environ

    ascii_only = _env_flag(env, "PI_PROMPTS_ASCII") or env.get("TERM") == "linux"
    return PromptSettings(
        with_guide=not _env_flag(env, "PI_PROMPTS_NO_GUIDE"),
        unicode=not ascii_only,
        ci=_env_flag(env, "CI"),
        color="NO_COLOR" not in env,
    )


_default_settings: PromptSettings | None = None


def get_settings() -> PromptSettings:
    """The process-wide default, resolved from the environment on first use."""
    global _default_settings
    if _default_settings is None:
        _default_settings = settings_from_env()
    return _default_settings
