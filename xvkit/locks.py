"""Spin locks owned by a thread and sleep locks owned by a process id."""

from __future__ import annotations

import threading
import traceback
from typing import Optional, Tuple

_MAX_PCS = 10


class LockError(RuntimeError):
    """A lock was acquired twice or released by a non-holder."""


def _caller_pcs() -> Tuple[Tuple[str, int], ...]:
    frames = traceback.extract_stack()[:-2]
    return tuple((f.filename, f.lineno or 0) for f in reversed(frames[-_MAX_PCS:]))


class SpinLock:
    """A mutual-exclusion lock that records which thread holds it and from where."""

    def __init__(self, name: str = "spinlock") -> None:
        self.name = name
        self._lock = threading.Lock()
        self.cpu: Optional[int] = None
        self.pcs: Tuple[Tuple[str, int], ...] = ()

    @property
    def locked(self) -> bool:
        """Whether any thread holds the lock."""
        return self._lock.locked()

    def acquire(self) -> None:
        """Wait for the lock and take it; taking it twice is an error."""
        if self.holding():
            raise LockError(f"acquire: {self.name} already held")
        self._lock.acquire()
        self.cpu = threading.get_ident()
        self.pcs = _caller_pcs()

    def release(self) -> None:
        """Give up the lock; only the holder may."""
        if not self.holding():
            raise LockError(f"release: {self.name} not held")
        self.pcs = ()
        self.cpu = None
        self._lock.release()

    def holding(self) -> bool:
        """Whether the calling thread holds the lock."""
        return self._lock.locked() and self.cpu == threading.get_ident()

    def __enter__(self) -> "SpinLock":
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()


class SleepLock:
    """A long-term lock; waiters sleep until the holder releases it."""

    def __init__(self, name: str = "sleep lock") -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition()

    def acquire(self, pid: int) -> None:
        """Sleep until the lock is free, then take it for pid."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        """Free the lock and wake all sleepers."""
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether pid holds the lock."""
        with self._cond:
            return self.locked and self.pid == pid