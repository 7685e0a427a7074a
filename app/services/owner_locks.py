"""
app/services/owner_locks.py

In-process per-owner locks serializing imports and order mutations.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class OwnerLockRegistry:
    """
    Hands out one lock per (scope, owner id) pair.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}

    def lock_for(self, scope: str, owner_id: str) -> threading.Lock:
        key = (scope, owner_id)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, scope: str, owner_id: str, *, blocking: bool = True) -> Iterator[bool]:
        """
        Yield True when the lock was acquired; with ``blocking=False`` a busy
        lock yields False immediately instead of waiting.
        """

        lock = self.lock_for(scope, owner_id)
        acquired = lock.acquire(blocking=blocking)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()


owner_locks = OwnerLockRegistry()
