"""Process snapshot source and kill primitive for nodepm."""

import psutil

from nodepm.logging import get_logger
from nodepm.models import ProcessRecord

TARGET_RUNTIME = "node"
COMMAND_PLACEHOLDER = "N/A"

log = get_logger()


class SnapshotError(Exception):
    """The process table could not be read."""


class KillError(Exception):
    """A process could not be signalled."""


def is_target(name: str, command: str, target: str = TARGET_RUNTIME) -> bool:
    """Return True if the name or command line mentions ``target``."""
    target = target.lower()
    return target in name.lower() or target in command.lower()


class ProcessSource:
    """
    Reads process snapshots using psutil.

    Handles AccessDenied and ZombieProcess errors per process, so a process
    that exits mid-read is simply absent from the snapshot.
    """

    # Attributes to fetch in one pass
    ATTRS = ["pid", "name", "cmdline", "memory_info", "cpu_percent"]

    def __init__(self, show_all: bool = False, target: str = TARGET_RUNTIME) -> None:
        """
        Initialize the ProcessSource.

        Args:
            show_all: Include every process, not just the target runtime.
            target: Runtime family name matched against name and command line.
        """
        self._show_all = show_all
        self._target = target
        # Prime per-process CPU counters (first call returns 0.0)
        for _ in psutil.process_iter(attrs=["cpu_percent"]):
            pass

    @property
    def show_all(self) -> bool:
        return self._show_all

    def snapshot(self) -> list[ProcessRecord]:
        """
        Collect the current set of processes.

        Raises:
            SnapshotError: If the process table itself cannot be read.
        """
        records: list[ProcessRecord] = []
        try:
            for proc in psutil.process_iter(attrs=self.ATTRS):
                try:
                    record = self._to_record(proc.info)
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue
                if self._show_all or is_target(record.name, record.command, self._target):
                    records.append(record)
        except (psutil.Error, OSError) as e:
            raise SnapshotError(str(e) or type(e).__name__) from e
        return records

    @staticmethod
    def _to_record(info: dict) -> ProcessRecord:
        cmdline = info.get("cmdline") or []
        command = " ".join(cmdline) if cmdline else COMMAND_PLACEHOLDER

        mem_info = info.get("memory_info")
        memory_bytes = mem_info.rss if mem_info else 0

        return ProcessRecord(
            pid=info["pid"],
            name=info.get("name") or "",
            command=command,
            memory_bytes=memory_bytes,
            cpu_percent=info.get("cpu_percent") or 0.0,
        )

    def kill(self, pid: int) -> None:
        """
        Send SIGTERM to ``pid``.

        Raises:
            KillError: If the process is gone or the caller lacks permission.
        """
        try:
            psutil.Process(pid).terminate()
        except psutil.NoSuchProcess as e:
            raise KillError(f"No such process {pid}") from e
        except psutil.AccessDenied as e:
            raise KillError(f"Permission denied for process {pid}") from e
        except psutil.Error as e:
            raise KillError(str(e) or type(e).__name__) from e
        log.info("process_terminated", pid=pid)
