"""Verification Test: Chaos Monkey - Random process termination resilience.

Snapshots are taken while child processes are spawned and terminated
around them. A process that exits mid-read must simply be absent from the
snapshot; the snapshot itself must never raise NoSuchProcess, AccessDenied
or ZombieProcess.
"""

import multiprocessing
import random
import time

import pytest

from nodepm.models import ProcessRecord
from nodepm.monitor import ProcessSource


def dummy_worker(duration: float = 60.0) -> None:
    """A dummy worker process that sleeps for a given duration."""
    try:
        time.sleep(duration)
    except (KeyboardInterrupt, SystemExit):
        pass


def _cleanup(processes: list[multiprocessing.Process], timeout: float = 1.0) -> None:
    for p in processes:
        if p.is_alive():
            p.terminate()
    for p in processes:
        p.join(timeout=timeout)


class TestChaosMonkey:
    """Chaos Monkey verification suite tests."""

    def test_snapshot_survives_process_termination(self):
        """
        Test that snapshots don't fail when processes die between reads.

        Half of the spawned workers are terminated one by one, with a
        snapshot taken after every termination.
        """
        processes = []
        for _ in range(30):
            p = multiprocessing.Process(target=dummy_worker, args=(60.0,))
            p.start()
            processes.append(p)

        source = ProcessSource(show_all=True)

        try:
            before = source.snapshot()
            assert before

            for p in random.sample(processes, 15):
                if p.is_alive():
                    p.terminate()
                try:
                    snapshot = source.snapshot()
                except Exception as e:
                    pytest.fail(f"snapshot raised {type(e).__name__}: {e}")
                assert all(isinstance(r, ProcessRecord) for r in snapshot)
        finally:
            _cleanup(processes)

    def test_rapid_process_creation_and_termination(self):
        """
        Test snapshot stability during rapid process churn.

        Processes are created and destroyed continuously while snapshots are
        taken in a tight loop.
        """
        source = ProcessSource(show_all=True)
        processes = []
        snapshots = 0

        try:
            start_time = time.time()
            while time.time() - start_time < 2.0:
                for _ in range(3):
                    p = multiprocessing.Process(target=dummy_worker, args=(10.0,))
                    p.start()
                    processes.append(p)

                alive = [p for p in processes if p.is_alive()]
                if len(alive) > 6:
                    for p in random.sample(alive, 3):
                        p.terminate()

                assert isinstance(source.snapshot(), list)
                snapshots += 1

            assert snapshots >= 3
        finally:
            _cleanup(processes, timeout=0.5)

    def test_terminated_process_not_reported(self):
        """A reaped worker is not in the next snapshot."""
        p = multiprocessing.Process(target=dummy_worker, args=(60.0,))
        p.start()
        time.sleep(0.1)

        source = ProcessSource(show_all=True)
        assert p.pid in {r.pid for r in source.snapshot()}

        p.terminate()
        p.join(timeout=2.0)

        assert p.pid not in {r.pid for r in source.snapshot()}

    def test_zombie_process_handling(self):
        """
        Test that snapshots handle zombie processes.

        A worker that has exited but not yet been joined stays a zombie; it
        may or may not appear, but reading it must not raise.
        """
        source = ProcessSource(show_all=True)

        p = multiprocessing.Process(target=dummy_worker, args=(0.1,))
        p.start()
        try:
            time.sleep(0.3)
            for _ in range(3):
                assert isinstance(source.snapshot(), list)
        finally:
            p.join(timeout=1.0)
