"""Shared fixtures for nodepm tests."""

import pytest

from nodepm.models import ProcessRecord
from nodepm.monitor import KillError, SnapshotError


def make_record(
    pid: int,
    name: str = "node",
    command: str = "node index.js",
    memory_bytes: int = 50_000_000,
    cpu_percent: float = 1.0,
) -> ProcessRecord:
    return ProcessRecord(
        pid=pid,
        name=name,
        command=command,
        memory_bytes=memory_bytes,
        cpu_percent=cpu_percent,
    )


class FakeSource:
    """In-memory stand-in for ProcessSource."""

    def __init__(self, processes=(), fail_snapshot: str | None = None, fail_kill: str | None = None):
        self.processes = list(processes)
        self.fail_snapshot = fail_snapshot
        self.fail_kill = fail_kill
        self.snapshots = 0
        self.killed: list[int] = []

    def snapshot(self) -> list[ProcessRecord]:
        self.snapshots += 1
        if self.fail_snapshot:
            raise SnapshotError(self.fail_snapshot)
        return list(self.processes)

    def kill(self, pid: int) -> None:
        if self.fail_kill:
            raise KillError(self.fail_kill)
        self.killed.append(pid)
        self.processes = [p for p in self.processes if p.pid != pid]


class FakeAI:
    """Records prompts instead of calling a model."""

    def __init__(self, api_key: str, answer: str = "It is a dev server.", error: Exception | None = None):
        self.api_key = api_key
        self.answer = answer
        self.error = error
        self.explained: list[ProcessRecord] = []
        self.asked: list[tuple[str, tuple, str]] = []

    def explain(self, process):
        if self.error:
            raise self.error
        self.explained.append(process)
        return self.answer

    def ask(self, question, processes, label="Node.js"):
        if self.error:
            raise self.error
        self.asked.append((question, tuple(processes), label))
        return self.answer


@pytest.fixture
def scenario_processes() -> list[ProcessRecord]:
    """Two Node processes: one heavy, one light."""
    return [
        make_record(10, "node", "node server.js", memory_bytes=600_000_000, cpu_percent=60.0),
        make_record(11, "nodemon", "nodemon app.js", memory_bytes=50_000_000, cpu_percent=10.0),
    ]
