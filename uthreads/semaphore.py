"""Counting semaphores for user-level threads."""

from __future__ import annotations

from .preempt import disabled
from .queue import Queue, QueueError
from .scheduler import block, current, unblock, yield_


class SemaphoreError(Exception):
    """Raised on an invalid semaphore operation."""


class Semaphore:
    """Semaphore with an internal count and a FIFO list of blocked threads."""

    __slots__ = ("_count", "_waiters", "_destroyed")

    def __init__(self, count: int) -> None:
        if not isinstance(count, int) or count < 0:
            raise SemaphoreError("semaphore count must be a non-negative integer")
        self._count = count
        self._waiters = Queue()
        self._destroyed = False

    def _check_alive(self) -> None:
        if self._destroyed:
            raise SemaphoreError("semaphore has been destroyed")

    @property
    def count(self) -> int:
        """Resources currently available."""
        return self._count

    def down(self) -> None:
        """Take a resource, blocking the calling thread until one is free."""
        self._check_alive()
        with disabled():
            while self._count == 0:
                tcb = current()
                if tcb is None:
                    raise SemaphoreError("cannot block outside a user-level thread")
                self._waiters.enqueue(tcb)
                block()
            self._count -= 1

    def up(self) -> None:
        """Release a resource, waking the oldest blocked thread if any."""
        self._check_alive()
        with disabled():
            self._count += 1
            try:
                waiter = self._waiters.dequeue()
            except QueueError:
                waiter = None
            else:
                unblock(waiter)
        if waiter is not None:
            yield_()

    def destroy(self) -> None:
        """Retire the semaphore; no thread may still be blocked on it."""
        self._check_alive()
        if len(self._waiters):
            raise SemaphoreError("threads are still blocked on the semaphore")
        self._waiters.destroy()
        self._destroyed = True

    def __len__(self) -> int:
        """Number of threads blocked on the semaphore."""
        self._check_alive()
        return len(self._waiters)

    def __repr__(self) -> str:
        if self._destroyed:
            return "<Semaphore destroyed>"
        return f"<Semaphore count={self._count} waiting={len(self._waiters)}>"