"""Scheduler for user-level threads.

``run`` turns the calling thread into the idle scheduler. It hands the CPU
to ready threads in FIFO order until no thread is ready any more. Threads
give the CPU back by yielding, blocking, finishing or calling ``exit_``.
With preemption they can also be forced to yield.
"""

from __future__ import annotations

from typing import Any, Callable

from .context import Context
from .preempt import disabled, preempt_start, preempt_stop
from .queue import Queue, QueueError

ThreadFunc = Callable[[Any], object]


class UThreadError(Exception):
    """Raised when the scheduler cannot carry out a request."""


class _ThreadExit(BaseException):
    """Unwinds a thread that called ``exit_``."""


class ThreadControlBlock:
    """Internal record of one user-level thread."""

    __slots__ = ("func", "arg", "context")

    def __init__(self, func: ThreadFunc, arg: Any) -> None:
        self.func = func
        self.arg = arg
        self.context = Context(self._entry, None)

    def _entry(self, _unused: Any) -> None:
        try:
            self.func(self.arg)
        except _ThreadExit:
            pass

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", repr(self.func))
        return f"<ThreadControlBlock {name} {self.context!r}>"


_ready: Queue | None = None
_current: ThreadControlBlock | None = None
_scheduler: Context | None = None


def _ready_queue() -> Queue:
    if _ready is None:
        raise UThreadError("the scheduler is not running")
    return _ready


def run(preempt: bool, func: ThreadFunc, arg: Any = None) -> None:
    """Run ``func(arg)`` as the first thread and return when no thread is ready.

    If ``preempt`` is true, running threads are preempted by a timer. If a
    thread raised an exception, ``UThreadError`` is raised once scheduling
    is over, chained to the first such exception.
    """
    global _ready, _current, _scheduler
    if _ready is not None:
        raise UThreadError("the scheduler is already running")
    preempt_start(preempt)
    _ready = Queue()
    _scheduler = Context(None, None)
    failure: BaseException | None = None
    try:
        create(func, arg)
        while True:
            try:
                tcb = _ready.dequeue()
            except QueueError:
                break
            _current = tcb
            _scheduler.switch(tcb.context)
            ended = _current
            if (
                failure is None
                and ended is not None
                and ended.context.finished()
                and ended.context.error is not None
            ):
                failure = ended.context.error
        _ready.destroy()
    finally:
        _ready = None
        _current = None
        _scheduler = None
        preempt_stop()
    if failure is not None:
        raise UThreadError(f"a thread raised {failure!r}") from failure


def create(func: ThreadFunc, arg: Any = None) -> ThreadControlBlock:
    """Create a ready thread that will run ``func(arg)`` and return its TCB."""
    ready = _ready_queue()
    if func is None or not callable(func):
        raise UThreadError("thread function must be callable")
    tcb = ThreadControlBlock(func, arg)
    tcb.context.link = _scheduler
    with disabled():
        ready.enqueue(tcb)
    return tcb


def yield_() -> None:
    """Let other ready threads run before the calling thread continues.

    Has no effect outside a user-level thread.
    """
    tcb = _current
    if tcb is None or _ready is None or _scheduler is None:
        return
    with disabled():
        _ready.enqueue(tcb)
        tcb.context.switch(_scheduler)


def exit_() -> None:
    """Finish the calling thread at once. Never returns."""
    if _current is None:
        raise UThreadError("exit_() called outside a user-level thread")
    raise _ThreadExit


def current() -> ThreadControlBlock | None:
    """The running thread's TCB, or ``None`` outside a user-level thread."""
    return _current


def block() -> None:
    """Suspend the calling thread until another thread unblocks it."""
    global _current
    prev = _current
    if prev is None:
        raise UThreadError("block() called outside a user-level thread")
    ready = _ready_queue()
    with disabled():
        try:
            nxt = ready.dequeue()
        except QueueError:
            nxt = None
        if nxt is None:
            prev.context.switch(_scheduler)
        else:
            _current = nxt
            prev.context.switch(nxt.context)


def unblock(tcb: ThreadControlBlock | None) -> None:
    """Make a blocked thread ready again. ``None`` is ignored."""
    if tcb is None:
        return
    ready = _ready_queue()
    with disabled():
        ready.enqueue(tcb)