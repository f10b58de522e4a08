"""Per-batch mutual exclusion for ledger mutations.

Calls touching the same batch run one at a time; calls on different batches
never wait on each other. Idle entries are dropped once their last holder or
waiter leaves, so the registry does not grow with the number of batches ever
touched.

Ledgers share one registry (``default_locks()``), so two ledger instances in the
same process still exclude each other on a batch.
"""

import threading
from contextlib import contextmanager

import structlog

from storeledger.errors import LedgerBusy
from storeledger.utils.settings import get_settings

logger = structlog.get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class BatchLocks:
    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    @contextmanager
    def hold(self, batch_id, timeout: float | None = None):
        """Hold the lock for ``batch_id``; raise ``LedgerBusy`` if it stays taken past the timeout."""
        key = str(batch_id)
        wait = self.timeout if timeout is None else timeout
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=wait):
                logger.warning("Batch lock timed out", batch_id=key, timeout=wait)
                raise LedgerBusy(f"Batch {key} is busy; retry later")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)

    def __len__(self):
        with self._guard:
            return len(self._entries)


_default_locks: BatchLocks | None = None
_default_guard = threading.Lock()


def default_locks() -> BatchLocks:
    """The process-wide registry shared by every ledger not given its own."""
    global _default_locks
    with _default_guard:
        if _default_locks is None:
            _default_locks = BatchLocks(timeout=get_settings().lock_timeout)
        return _default_locks
