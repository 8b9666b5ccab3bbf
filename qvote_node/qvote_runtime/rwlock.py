from __future__ import annotations

"""
Bounded readers/writer lock.

- Many readers may hold the lock at once; a writer holds it alone.
- Waiting writers block new readers, so a steady stream of queries cannot
  starve a phase change.
- Every acquisition takes a timeout; expiry raises ElectionBusy and leaves
  the lock state untouched.
"""

import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from .errors import ElectionBusy


class ReadWriteLock:
    def __init__(self, timeout: Optional[float] = 2.0) -> None:
        self.timeout = timeout
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        t = self.timeout if timeout is None else timeout
        if t is None:
            return None
        return time.monotonic() + max(0.0, float(t))

    def _wait(self, deadline: Optional[float]) -> bool:
        if deadline is None:
            self._cond.wait()
            return True
        left = deadline - time.monotonic()
        if left <= 0:
            return False
        self._cond.wait(left)
        return True

    # ----- shared -----
    def acquire_read(self, timeout: Optional[float] = None) -> None:
        deadline = self._deadline(timeout)
        with self._cond:
            while self._writer or self._writers_waiting:
                if not self._wait(deadline):
                    raise ElectionBusy(self.timeout if timeout is None else timeout)
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read without matching acquire_read")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    # ----- exclusive -----
    def acquire_write(self, timeout: Optional[float] = None) -> None:
        deadline = self._deadline(timeout)
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    if not self._wait(deadline):
                        raise ElectionBusy(self.timeout if timeout is None else timeout)
                self._writer = True
            finally:
                self._writers_waiting -= 1
                # readers parked behind this writer need to re-check on timeout
                self._cond.notify_all()

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write without matching acquire_write")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self, timeout: Optional[float] = None) -> Iterator[None]:
        self.acquire_read(timeout)
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self, timeout: Optional[float] = None) -> Iterator[None]:
        self.acquire_write(timeout)
        try:
            yield
        finally:
            self.release_write()
