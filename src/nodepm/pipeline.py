"""Filter and sort stages of the process list.

Both stages are pure: they never mutate their input and never fail on
well-formed ProcessRecords.
"""

import locale
import re
from collections.abc import Callable, Sequence
from functools import cmp_to_key

from nodepm.models import ProcessRecord, SortColumn, SortOrder

# Maximum number of skipped haystack characters between two fuzzy hits
FUZZY_MAX_GAP = 3

_WORD_SPLIT = re.compile(r"[\s\-_./]")

SORT_CYCLE: tuple[tuple[SortColumn, SortOrder], ...] = (
    (SortColumn.CPU, SortOrder.DESC),
    (SortColumn.CPU, SortOrder.ASC),
    (SortColumn.MEMORY, SortOrder.DESC),
    (SortColumn.MEMORY, SortOrder.ASC),
    (SortColumn.NAME, SortOrder.ASC),
    (SortColumn.NAME, SortOrder.DESC),
    (SortColumn.NONE, SortOrder.DESC),
)


def fuzzy_match(query: str, haystack: str, max_gap: int = FUZZY_MAX_GAP) -> bool:
    """
    Match every character of ``query`` in order against ``haystack``.

    Characters are consumed greedily from the left. The match is rejected as
    soon as more than ``max_gap`` haystack characters separate two consecutive
    hits. Both arguments are expected to be lower-cased already.
    """
    if not query:
        return True

    query_index = 0
    last_match = -1
    for i, char in enumerate(haystack):
        if char != query[query_index]:
            continue
        if last_match != -1 and i - last_match - 1 > max_gap:
            return False
        last_match = i
        query_index += 1
        if query_index == len(query):
            return True

    return False


def _word_prefix_match(query: str, *texts: str) -> bool:
    for text in texts:
        for word in _WORD_SPLIT.split(text):
            if word.startswith(query):
                return True
    return False


def matches(process: ProcessRecord, query: str) -> bool:
    """Return True if ``process`` satisfies any filter tier for ``query``."""
    pid_text = str(process.pid)
    lower_query = query.lower()
    lower_name = process.name.lower()
    lower_command = process.command.lower()

    # Substring
    if query in pid_text or lower_query in lower_name or lower_query in lower_command:
        return True

    # Word prefix, e.g. "serv" matches "node-server"
    if _word_prefix_match(lower_query, lower_name, lower_command):
        return True

    return fuzzy_match(lower_query, f"{pid_text} {lower_name} {lower_command}")


def filter_processes(processes: Sequence[ProcessRecord], query: str) -> Sequence[ProcessRecord]:
    """
    Return the processes matching ``query``, preserving input order.

    Only an exactly empty query disables filtering; the input is then returned
    as-is. A whitespace-only query is matched literally.
    """
    if not query:
        return processes
    return [p for p in processes if matches(p, query)]


def _compare_numbers(a: float, b: float) -> int:
    return (a > b) - (a < b)


def _compare_names(a: ProcessRecord, b: ProcessRecord) -> int:
    result = locale.strcoll(a.name.casefold(), b.name.casefold())
    if result == 0:
        result = locale.strcoll(a.name, b.name)
    return (result > 0) - (result < 0)


_COMPARATORS: dict[SortColumn, Callable[[ProcessRecord, ProcessRecord], int]] = {
    SortColumn.PID: lambda a, b: _compare_numbers(a.pid, b.pid),
    SortColumn.NAME: _compare_names,
    SortColumn.CPU: lambda a, b: _compare_numbers(a.cpu_percent, b.cpu_percent),
    SortColumn.MEMORY: lambda a, b: _compare_numbers(a.memory_bytes, b.memory_bytes),
}


def sort_processes(
    processes: Sequence[ProcessRecord],
    column: SortColumn,
    order: SortOrder,
) -> Sequence[ProcessRecord]:
    """
    Return a stably sorted copy of ``processes``.

    Descending order flips the sign of the column comparator, so equal
    elements keep their input order in both directions. ``SortColumn.NONE``
    returns the input unchanged.
    """
    if column is SortColumn.NONE:
        return processes

    compare = _COMPARATORS[column]
    sign = 1 if order is SortOrder.ASC else -1
    return sorted(processes, key=cmp_to_key(lambda a, b: sign * compare(a, b)))


def next_sort(column: SortColumn, order: SortOrder) -> tuple[SortColumn, SortOrder]:
    """Advance through SORT_CYCLE; states outside the cycle restart at CPU descending."""
    try:
        index = SORT_CYCLE.index((column, order))
    except ValueError:
        index = -1
    return SORT_CYCLE[(index + 1) % len(SORT_CYCLE)]


def toggle_sort(
    column: SortColumn,
    order: SortOrder,
    selected: SortColumn,
) -> tuple[SortColumn, SortOrder]:
    """Flip the order of the active column, or switch to ``selected`` descending."""
    if column is selected:
        flipped = SortOrder.ASC if order is SortOrder.DESC else SortOrder.DESC
        return column, flipped
    return selected, SortOrder.DESC
