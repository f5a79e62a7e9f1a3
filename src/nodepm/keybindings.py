"""Keyboard bindings for nodepm.

Keys use Textual key names ("ctrl+f", "question_mark", ...). Every binding
carries the guards the coordinator enforces before running its action.
"""

import sys
from dataclasses import dataclass
from enum import Enum


class Action(Enum):
    """Everything a key in the process list can trigger."""

    FORCE_QUIT = "force_quit"
    QUIT = "quit"
    COPY = "copy"
    REFRESH = "refresh"
    FILTER = "filter"
    KILL = "kill"
    NAVIGATE_UP = "navigate_up"
    NAVIGATE_DOWN = "navigate_down"
    SORT_CYCLE = "sort_cycle"
    SORT_CPU = "sort_cpu"
    SORT_MEMORY = "sort_memory"
    AI_EXPLAIN = "ai_explain"
    AI_ASK = "ai_ask"
    HELP = "help"


@dataclass(slots=True, frozen=True)
class KeyBinding:
    """One or more keys bound to an action."""

    keys: tuple[str, ...]
    action: Action
    label: str
    description: str
    requires_no_modal: bool = False
    requires_no_filter: bool = False


def _force_quit_keys(platform: str = sys.platform) -> tuple[str, ...]:
    # Ctrl+C stays free for copying on macOS terminals
    if platform == "darwin":
        return ("ctrl+d",)
    return ("ctrl+d", "ctrl+c")


KEY_BINDINGS: dict[str, KeyBinding] = {
    "FORCE_QUIT": KeyBinding(
        keys=_force_quit_keys(),
        action=Action.FORCE_QUIT,
        label="Ctrl+D",
        description="Force quit the application",
    ),
    "QUIT": KeyBinding(
        keys=("q", "escape"),
        action=Action.QUIT,
        label="q/Esc",
        description="Quit the application (when no modal is open)",
        requires_no_modal=True,
    ),
    "COPY_TO_CLIPBOARD": KeyBinding(
        keys=("alt+c", "ctrl+shift+c"),
        action=Action.COPY,
        label="Alt+C",
        description="Copy selected process info to clipboard",
        requires_no_modal=True,
    ),
    "REFRESH": KeyBinding(
        keys=("ctrl+r", "alt+r"),
        action=Action.REFRESH,
        label="Ctrl+R",
        description="Refresh the process list",
        requires_no_modal=True,
        requires_no_filter=True,
    ),
    "FILTER": KeyBinding(
        keys=("ctrl+f", "alt+f"),
        action=Action.FILTER,
        label="Ctrl+F",
        description="Enter filter mode (fuzzy search)",
        requires_no_modal=True,
        requires_no_filter=True,
    ),
    "KILL": KeyBinding(
        keys=("enter", "k"),
        action=Action.KILL,
        label="Enter/k",
        description="Kill selected process (with confirmation)",
        requires_no_modal=True,
    ),
    "NAV_UP": KeyBinding(
        keys=("up",),
        action=Action.NAVIGATE_UP,
        label="↑",
        description="Navigate up in process list",
        requires_no_modal=True,
    ),
    "NAV_DOWN": KeyBinding(
        keys=("down", "j"),
        action=Action.NAVIGATE_DOWN,
        label="↓/j",
        description="Navigate down in process list",
        requires_no_modal=True,
    ),
    "SORT_CYCLE": KeyBinding(
        keys=("s",),
        action=Action.SORT_CYCLE,
        label="s",
        description="Cycle through sort modes (CPU↓, CPU↑, Mem↓, Mem↑, Name↑, Name↓, None)",
        requires_no_modal=True,
    ),
    "SORT_CPU": KeyBinding(
        keys=("c",),
        action=Action.SORT_CPU,
        label="c",
        description="Quick sort by CPU usage (toggle ascending/descending)",
        requires_no_modal=True,
    ),
    "SORT_MEMORY": KeyBinding(
        keys=("m",),
        action=Action.SORT_MEMORY,
        label="m",
        description="Quick sort by Memory usage (toggle ascending/descending)",
        requires_no_modal=True,
    ),
    "AI_EXPLAIN": KeyBinding(
        keys=("question_mark",),
        action=Action.AI_EXPLAIN,
        label="?",
        description="Explain selected process with AI",
        requires_no_modal=True,
    ),
    "AI_ASK": KeyBinding(
        keys=("slash",),
        action=Action.AI_ASK,
        label="/",
        description="Ask AI a custom question about processes",
        requires_no_modal=True,
    ),
    "HELP": KeyBinding(
        keys=("h",),
        action=Action.HELP,
        label="h",
        description="Show help",
        requires_no_modal=True,
    ),
}

_HELP_BAR = [
    ("↑↓", "Nav"),
    ("Enter", "Kill"),
    ("Alt+C", "Copy"),
    ("?", "Explain"),
    ("/", "Ask"),
    ("Ctrl+F", "Filter"),
    ("Ctrl+R", "Refresh"),
    ("s", "Sort"),
    ("h", "Help"),
    ("q", "Quit"),
]


def binding_for_key(key: str) -> KeyBinding | None:
    """Return the binding that owns ``key``, if any."""
    for binding in KEY_BINDINGS.values():
        if key in binding.keys:
            return binding
    return None


def bindings_for_action(action: Action) -> list[KeyBinding]:
    return [b for b in KEY_BINDINGS.values() if b.action is action]


def all_keys() -> list[str]:
    """All distinct bound keys, sorted."""
    return sorted({key for binding in KEY_BINDINGS.values() for key in binding.keys})


def find_conflicts() -> dict[str, list[str]]:
    """Map each key bound more than once to the names of its bindings."""
    owners: dict[str, list[str]] = {}
    for name, binding in KEY_BINDINGS.items():
        for key in binding.keys:
            owners.setdefault(key, []).append(name)
    return {key: names for key, names in owners.items() if len(names) > 1}


def help_bar_text() -> str:
    """Shortcut summary in Rich markup."""
    return " " + " ".join(f"[bold]{label}[/bold]:{text}" for label, text in _HELP_BAR)
