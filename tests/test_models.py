"""Tests for nodepm data models."""

import dataclasses

import pytest

from nodepm.models import DisplayRow, ProcessRecord, Severity, SortColumn, SortOrder


def test_process_record_creation():
    """Test ProcessRecord dataclass creation."""
    record = ProcessRecord(
        pid=123,
        name="node",
        command="node server.js",
        memory_bytes=1024000,
        cpu_percent=150.0,
    )

    assert record.pid == 123
    assert record.name == "node"
    assert record.command == "node server.js"
    assert record.memory_bytes == 1024000
    # Aggregate core time may exceed 100
    assert record.cpu_percent == 150.0


def test_process_record_is_frozen():
    """Test that ProcessRecord is immutable (frozen)."""
    record = ProcessRecord(pid=1, name="node", command="N/A", memory_bytes=0, cpu_percent=0.0)

    with pytest.raises(dataclasses.FrozenInstanceError):
        record.pid = 999


def test_process_record_uses_slots():
    """Test that ProcessRecord uses __slots__ for memory efficiency."""
    record = ProcessRecord(pid=1, name="node", command="N/A", memory_bytes=0, cpu_percent=0.0)

    assert not hasattr(record, "__dict__")


def test_process_record_equality():
    """Records with the same fields compare equal."""
    a = ProcessRecord(pid=5, name="node", command="node a.js", memory_bytes=10, cpu_percent=1.0)
    b = ProcessRecord(pid=5, name="node", command="node a.js", memory_bytes=10, cpu_percent=1.0)

    assert a == b
    assert hash(a) == hash(b)


def test_display_row_defaults_to_not_self():
    """DisplayRow is_self defaults to False."""
    row = DisplayRow(
        pid=1,
        cells=("1", "node", "0.0%", "0 B", "N/A"),
        cpu_severity=Severity.NORMAL,
        memory_severity=Severity.NORMAL,
    )

    assert row.is_self is False


class TestEnums:
    """Tests for sort and severity enums."""

    def test_sort_column_members(self):
        assert [c.value for c in SortColumn] == ["pid", "name", "cpu", "memory", "none"]

    def test_sort_order_members(self):
        assert {o.value for o in SortOrder} == {"asc", "desc"}

    def test_severity_members(self):
        assert [s.value for s in Severity] == ["normal", "elevated", "critical"]
