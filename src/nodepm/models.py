"""Data models for nodepm."""

from dataclasses import dataclass
from enum import Enum


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of one process."""

    pid: int
    name: str
    command: str  # "N/A" when the OS reports nothing
    memory_bytes: int  # Resident set size
    cpu_percent: float  # 0.0 - 100.0 * core_count


class SortColumn(Enum):
    """Columns the process list can be ordered by."""

    PID = "pid"
    NAME = "name"
    CPU = "cpu"
    MEMORY = "memory"
    NONE = "none"


class SortOrder(Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class Severity(Enum):
    """Presentation band for a numeric cell."""

    NORMAL = "normal"
    ELEVATED = "elevated"
    CRITICAL = "critical"


@dataclass(slots=True, frozen=True)
class DisplayRow:
    """Render-ready cells for one process."""

    pid: int
    cells: tuple[str, str, str, str, str]  # pid, name, cpu, memory, command
    cpu_severity: Severity
    memory_severity: Severity
    is_self: bool = False
