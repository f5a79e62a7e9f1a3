"""Help content, generated from the key table."""

from rich.console import RenderableType
from rich.markdown import Markdown
from rich.text import Text

from nodepm.keybindings import KEY_BINDINGS, KeyBinding

FALLBACK_HELP = """Use the arrow keys to navigate the process list.
Press Enter to kill a selected process.
Press ? to explain a process with AI.
Press / to ask AI a custom question.
Press h to open this help.
Press Ctrl+R to refresh the list.
Press Ctrl+F to filter the list.
Press s to cycle sort modes, c to sort by CPU, m to sort by Memory.
Press q to quit."""

_KEY_NAMES = {
    "question_mark": "?",
    "slash": "/",
    "escape": "Esc",
    "enter": "Enter",
    "up": "↑",
    "down": "↓",
}


def _key_label(key: str) -> str:
    if key in _KEY_NAMES:
        return _KEY_NAMES[key]
    parts = key.split("+")
    if len(parts) == 1:
        return key
    return "+".join(part.capitalize() for part in parts)


def _guards(binding: KeyBinding) -> str:
    notes = []
    if binding.requires_no_modal:
        notes.append("no dialog open")
    if binding.requires_no_filter:
        notes.append("not filtering")
    return ", ".join(notes) or "always"


def help_markdown() -> str:
    """Markdown help page listing every binding."""
    lines = [
        "# nodepm",
        "",
        "Interactive manager for Node.js processes. Start with `--all` to list every process.",
        "",
        "## Keys",
        "",
        "| Keys | Action | Available |",
        "| --- | --- | --- |",
    ]
    for binding in KEY_BINDINGS.values():
        keys = ", ".join(f"`{_key_label(key)}`" for key in binding.keys)
        lines.append(f"| {keys} | {binding.description} | {_guards(binding)} |")
    lines += [
        "",
        "## Filtering",
        "",
        "While filtering, typed characters edit the query and `Esc` leaves filter mode.",
        "A process matches on a substring of its PID, name or command, on a word prefix,",
        "or on a tight fuzzy match where matched characters sit close together.",
        "",
        "## AI",
        "",
        "Explain and ask use OpenAI. The key comes from `OPENAI_API_KEY` or is prompted for",
        "once and stored in `~/.config/nodepm/config.toml`.",
    ]
    return "\n".join(lines)


def render_help() -> RenderableType:
    """Rendered help page, or the plain fallback text if rendering fails."""
    try:
        return Markdown(help_markdown())
    except Exception:  # noqa: BLE001
        return Text(FALLBACK_HELP)
