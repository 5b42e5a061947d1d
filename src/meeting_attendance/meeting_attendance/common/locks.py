from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator

from ..core.exceptions import StorageUnavailableError


class KeyedLock:
    """A registry of mutexes, one per key.

    Entries are reference counted and dropped once nobody holds or waits on them,
    so the registry does not grow with every (meeting, user) pair ever seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable, *, timeout: float) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1

        acquired = lock.acquire(timeout=timeout)
        try:
            if not acquired:
                raise StorageUnavailableError(f"Timed out waiting for lock {key!r}")
            yield
        finally:
            if acquired:
                lock.release()
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
