"""
Proxy Match: Per-key mutual exclusion

``KeyedLock`` hands out one ``threading.Lock`` per key, created on demand
and discarded when no thread holds or waits for it.  Operations on
unrelated keys never contend; the internal guard only protects the lock
table itself.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Hashable, Iterator


class KeyedLock:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, list[Any]] = {}  # key -> [lock, refcount]

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        """Hold the locks for ``keys``, acquired in sorted order.

        Keys of one ``KeyedLock`` must be mutually orderable.
        """
        ordered = sorted(set(keys))
        acquired: list[Hashable] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key][0].release()
                self._checkin(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
