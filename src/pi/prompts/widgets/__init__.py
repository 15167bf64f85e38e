"""Widget behaviors and the factories that wrap them in prompts."""

from pi.prompts.widgets.autocomplete import (
    AutocompleteBehavior,
    AutocompleteMultiSelectBehavior,
    SuggestionBehavior,
    autocomplete,
    autocomplete_multiselect,
    suggestion,
)
from pi.prompts.widgets.confirm import ConfirmBehavior, confirm
from pi.prompts.widgets.date import DateBehavior, date
from pi.prompts.widgets.multiselect import (
    GroupMultiSelectBehavior,
    MultiSelectBehavior,
    group_multiselect,
    multiselect,
)
from pi.prompts.widgets.options import Option, find_cursor, limit_options
from pi.prompts.widgets.path import PathBehavior, path
from pi.prompts.widgets.select import SelectBehavior, SelectKeyBehavior, select, select_key
from pi.prompts.widgets.text import (
    MultilineBehavior,
    NumberBehavior,
    TextBehavior,
    multiline,
    number,
    password,
    text,
)
