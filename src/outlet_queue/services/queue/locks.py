"""Per-outlet, per-day write serialization."""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from datetime import date
from typing import Iterator

from ...errors import RepositoryError


class OutletDayLocks:
    """Hands out one lock per (outlet, day) so that read-decide-write
    sequences on the same queue never interleave within this process.

    Cross-process safety comes from the repository's uniqueness and version
    checks; this lock only removes the in-process race.
    """

    def __init__(self, timeout_seconds: float) -> None:
        self._timeout = timeout_seconds
        self._guard = threading.Lock()
        # Entries disappear once no caller holds or waits on the lock.
        self._locks: weakref.WeakValueDictionary[tuple[str, date], threading.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, outlet_id: str, day: date) -> threading.Lock:
        with self._guard:
            lock = self._locks.get((outlet_id, day))
            if lock is None:
                lock = threading.Lock()
                self._locks[(outlet_id, day)] = lock
            return lock

    @contextmanager
    def hold(self, outlet_id: str, day: date) -> Iterator[None]:
        lock = self._lock_for(outlet_id, day)
        if not lock.acquire(timeout=self._timeout):
            raise RepositoryError(
                f"Timed out after {self._timeout}s waiting for the queue of outlet {outlet_id} on {day}."
            )
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        return len(self._locks)
