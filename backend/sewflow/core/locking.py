"""Per-order serialization of mutating engine calls."""

import threading
import weakref
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class OrderLockRegistry:
    """
    Hands out one re-entrant lock per order id.

    Calls on different orders never contend; calls on the same order run
    one at a time. Locks are re-entrant so an engine call may invoke
    another engine call on the same order.

    The registry only keeps weak references: a lock lives while some caller
    holds or references it, so the map never outgrows the orders in flight.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[Hashable, threading.RLock] = (
            weakref.WeakValueDictionary()
        )
        self._guard = threading.Lock()

    def lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock of one order for the duration of the block."""
        lock = self.lock_for(key)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
