"""Per-key locks for serialising writes to one session or one garment."""

from __future__ import annotations

import contextlib
import threading
from typing import Dict, Hashable, Iterator

from models.errors import PersistenceFailure


class KeyedLocks:
    """Registry handing out one lock per key, acquired with a bounded wait.

    A key's lock lives only while some caller holds or waits for it; the last
    one out removes it from the registry.
    """

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        self.timeout_seconds = timeout_seconds
        self._registry_lock = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: Hashable) -> None:
        with self._registry_lock:
            remaining = self._users[key] - 1
            if remaining:
                self._users[key] = remaining
            else:
                del self._users[key]
                del self._locks[key]

    @contextlib.contextmanager
    def hold(self, key: Hashable, timeout_seconds: float | None = None) -> Iterator[None]:
        """Hold the lock for ``key`` or raise :class:`PersistenceFailure` on timeout."""

        wait = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=wait):
                raise PersistenceFailure(
                    f"Timed out after {wait}s waiting for a write lock",
                    {"key": str(key), "timeout_seconds": wait},
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)


__all__ = ["KeyedLocks"]
