"""Presentation helpers: pure functions from process data to display text."""

import math
from collections.abc import Sequence
from datetime import datetime

from nodepm.models import DisplayRow, ProcessRecord, Severity, SortColumn, SortOrder

_UNITS = ["B", "KB", "MB", "GB", "TB"]

CPU_CRITICAL = 50.0
CPU_ELEVATED = 20.0
MEMORY_CRITICAL_MB = 500.0
MEMORY_ELEVATED_MB = 200.0

NAME_WIDTH = 20
SELF_NAME_WIDTH = 12
COMMAND_WIDTH = 60
SELF_MARKER = "(This Process)"

_COLUMN_LABELS = {
    SortColumn.PID: "PID",
    SortColumn.NAME: "Name",
    SortColumn.CPU: "CPU",
    SortColumn.MEMORY: "Mem",
}


def format_bytes(size: float | None) -> str:
    """Format a byte count as e.g. ``"1.5 KB"``; zero, NaN and None give ``"0 B"``."""
    if not size or math.isnan(size):
        return "0 B"
    index = math.floor(math.log(size) / math.log(1024))
    index = max(0, min(index, len(_UNITS) - 1))
    value = round(size / 1024**index, 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[index]}"


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, ending in an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def cpu_severity(cpu_percent: float) -> Severity:
    if cpu_percent > CPU_CRITICAL:
        return Severity.CRITICAL
    if cpu_percent > CPU_ELEVATED:
        return Severity.ELEVATED
    return Severity.NORMAL


def memory_severity(memory_bytes: int) -> Severity:
    memory_mb = memory_bytes / (1024 * 1024)
    if memory_mb > MEMORY_CRITICAL_MB:
        return Severity.CRITICAL
    if memory_mb > MEMORY_ELEVATED_MB:
        return Severity.ELEVATED
    return Severity.NORMAL


def to_display_row(process: ProcessRecord, own_pid: int) -> DisplayRow:
    """Build the table cells for ``process``; ``own_pid`` marks this program's row."""
    is_self = process.pid == own_pid
    if is_self:
        name = f"{truncate(process.name, SELF_NAME_WIDTH)} {SELF_MARKER}"
    else:
        name = truncate(process.name, NAME_WIDTH)

    return DisplayRow(
        pid=process.pid,
        cells=(
            str(process.pid),
            name,
            f"{process.cpu_percent:.1f}%",
            format_bytes(process.memory_bytes),
            truncate(process.command, COMMAND_WIDTH),
        ),
        cpu_severity=cpu_severity(process.cpu_percent),
        memory_severity=memory_severity(process.memory_bytes),
        is_self=is_self,
    )


def sort_arrow(order: SortOrder) -> str:
    return "↑" if order is SortOrder.ASC else "↓"


def column_headers(column: SortColumn, order: SortOrder) -> list[str]:
    """Table headers with an arrow on the active sort column."""
    arrow = sort_arrow(order)
    headers = [
        (SortColumn.PID, "PID"),
        (SortColumn.NAME, "Name"),
        (SortColumn.CPU, "CPU %"),
        (SortColumn.MEMORY, "Memory"),
    ]
    labels = [f"{label} {arrow}" if key is column else label for key, label in headers]
    labels.append("Command")
    return labels


def status_summary(
    processes: Sequence[ProcessRecord],
    shown: int,
    column: SortColumn,
    order: SortOrder,
    filtering: bool,
    show_all: bool,
    now: datetime | None = None,
) -> str:
    """
    Status bar line in Rich markup.

    Total memory always covers the full snapshot; the count switches to the
    filtered number while a non-empty filter is active.
    """
    now = now or datetime.now()
    total = len(processes)
    total_memory = sum(p.memory_bytes for p in processes)
    label = "" if show_all else "Node "
    count = shown if filtering else total

    parts = [
        f"[green]✓[/green] Found [bold cyan]{count}[/bold cyan] {label}processes",
        f"Total Memory: [bold yellow]{format_bytes(total_memory)}[/bold yellow]",
    ]
    if column is not SortColumn.NONE:
        parts.append(f"[cyan]Sort:[/cyan] [bold]{_COLUMN_LABELS[column]}{sort_arrow(order)}[/bold]")
    if filtering:
        parts.append(f"[yellow]Filtered: {shown}/{total}[/yellow]")
    parts.append(f"Last update: [dim]{now.strftime('%H:%M:%S')}[/dim]")
    return " | ".join(parts)


def clipboard_text(process: ProcessRecord) -> str:
    return f"PID: {process.pid} | Name: {process.name} | Command: {process.command}"
