"""Tests for the per-batch lock registry."""

import threading
import time

import pytest
from storeledger.batch.locks import BatchLocks, default_locks
from storeledger.errors import LedgerBusy, StorageFault


class TestBatchLocks:
    def test_idle_entries_are_dropped(self):
        locks = BatchLocks(timeout=1)
        with locks.hold("batch-1"):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_entry_dropped_after_error(self):
        locks = BatchLocks(timeout=1)
        with pytest.raises(RuntimeError):
            with locks.hold("batch-1"):
                raise RuntimeError("boom")
        assert len(locks) == 0

    def test_timeout_raises_ledger_busy(self):
        locks = BatchLocks(timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold("batch-1"):
                held.set()
                release.wait(2)

        thread = threading.Thread(target=holder)
        thread.start()
        held.wait(2)
        try:
            with pytest.raises(LedgerBusy) as exc:
                with locks.hold("batch-1"):
                    pass
            assert isinstance(exc.value, StorageFault)
        finally:
            release.set()
            thread.join()
        assert len(locks) == 0

    def test_different_batches_do_not_contend(self):
        locks = BatchLocks(timeout=0.05)
        with locks.hold("batch-1"):
            with locks.hold("batch-2"):
                assert len(locks) == 2

    def test_same_batch_is_serialised(self):
        locks = BatchLocks(timeout=5)
        active = []
        overlaps = []

        def worker():
            with locks.hold("batch-1"):
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
                time.sleep(0.005)
                active.pop()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []
        assert len(locks) == 0

    def test_default_registry_is_shared(self):
        assert default_locks() is default_locks()
        assert isinstance(default_locks(), BatchLocks)
