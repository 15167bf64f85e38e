"""pi-prompts: interactive terminal prompts with differential rendering."""

# Cancellation
from pi.prompts.cancellation import CANCEL, CancellationToken, is_cancel

# Key decoding
from pi.prompts.keys import Key, KeyEvent, decode_key

# One-shot output
from pi.prompts import log
from pi.prompts.log import box, cancel, intro, note, outro, stream

# Prompt state machine
from pi.prompts.prompt import BaseBehavior, Behavior, Prompt, PromptState

# Rendering
from pi.prompts.render import FrameRenderer

# Settings
from pi.prompts.settings import PromptSettings, get_settings, settings_from_env

# Spinners
from pi.prompts.spinner import Progress, Spinner, Task, progress, spinner, tasks

# Task log
from pi.prompts.task_log import TaskLog, task_log

# Terminal interface and implementation
from pi.prompts.terminal import ProcessTerminal, Terminal

# Theme
from pi.prompts.theme import Theme

# Widgets
from pi.prompts.widgets import (
    Option,
    autocomplete,
    autocomplete_multiselect,
    confirm,
    date,
    group_multiselect,
    multiline,
    multiselect,
    number,
    password,
    path,
    select,
    select_key,
    suggestion,
    text,
)

# Workflows
from pi.prompts.workflow import Workflow, WorkflowResult, group, workflow

__all__ = [
    # Cancellation
    "CANCEL",
    "CancellationToken",
    "is_cancel",
    # Keys
    "Key",
    "KeyEvent",
    "decode_key",
    # Output
    "box",
    "cancel",
    "intro",
    "log",
    "note",
    "outro",
    "stream",
    # Prompt
    "BaseBehavior",
    "Behavior",
    "Prompt",
    "PromptState",
    # Rendering
    "FrameRenderer",
    # Settings
    "PromptSettings",
    "get_settings",
    "settings_from_env",
    # Spinners
    "Progress",
    "Spinner",
    "Task",
    "progress",
    "spinner",
    "tasks",
    # Task log
    "TaskLog",
    "task_log",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Theme
    "Theme",
    # Widgets
    "Option",
    "autocomplete",
    "autocomplete_multiselect",
    "confirm",
    "date",
    "group_multiselect",
    "multiline",
    "multiselect",
    "number",
    "password",
    "path",
    "select",
    "select_key",
    "suggestion",
    "text",
    # Workflows
    "Workflow",
    "WorkflowResult",
    "group",
    "workflow",
]
