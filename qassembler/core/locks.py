"""Fair exclusive lock guarding a register's amplitude vector."""

from __future__ import annotations

import threading
from types import TracebackType
from typing import Optional, Type


class FairLock:
    """
    FIFO ticket lock.

    Threads are granted the lock strictly in the order they called
    :meth:`acquire`. The holding thread may re-acquire it; each acquire
    must be paired with a release. There is no timeout: callers that need
    one wrap the blocking acquire themselves.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._next_ticket = 0
        self._now_serving = 0
        self._owner: Optional[int] = None
        self._depth = 0

    def acquire(self) -> None:
        """Block until this caller's ticket is served."""
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                self._depth += 1
                return
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._now_serving:
                self._cond.wait()
            self._owner = me
            self._depth = 1

    def release(self) -> None:
        """Release one level; the last release serves the next ticket.

        Raises:
            RuntimeError: If the lock is not held by the calling thread.
        """
        with self._cond:
            if self._owner != threading.get_ident():
                raise RuntimeError("FairLock released by a thread that does not hold it.")
            self._depth -= 1
            if self._depth:
                return
            self._owner = None
            self._now_serving += 1
            self._cond.notify_all()

    def locked(self) -> bool:
        """Return True if some thread currently holds the lock."""
        with self._cond:
            return self._owner is not None

    def waiting(self) -> int:
        """Return the number of callers queued behind the current holder."""
        with self._cond:
            queued = self._next_ticket - self._now_serving
            return max(queued - (1 if self._owner is not None else 0), 0)

    def __enter__(self) -> "FairLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()
