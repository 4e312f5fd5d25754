"""Timer-driven preemption of running user-level threads.

A ticker thread raises a pending flag ``HZ`` times per second. Threads started
while preemption is active carry a trace hook that, once the thread has
enabled preemption, forcefully yields it when the flag is raised. Whether
preemption is enabled is a per-thread property, the way a signal mask is.
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator

HZ = 100
_INTERVAL = 1.0 / HZ

_HERE = os.path.dirname(os.path.abspath(__file__))
_UNTRACED = frozenset(
    os.path.normcase(os.path.join(_HERE, name)) for name in ("preempt.py", "context.py")
)

_lock = threading.Lock()
_active = False
_pending = threading.Event()
_ticker_stop: threading.Event | None = None
_ticker: threading.Thread | None = None
_old_trace: Any = None
_mask = threading.local()


@lru_cache(maxsize=None)
def _is_untraced(filename: str) -> bool:
    return os.path.normcase(os.path.abspath(filename)) in _UNTRACED


def _blocked() -> bool:
    # A thread starts with preemption blocked until it enables it.
    return getattr(_mask, "blocked", True)


def _tick(stop: threading.Event) -> None:
    while not stop.wait(_INTERVAL):
        _pending.set()


def _deliver() -> None:
    from .scheduler import yield_

    preempt_disable()
    try:
        yield_()
    finally:
        preempt_enable()


def _local_trace(frame, event, arg):
    if event == "line" and _active and _pending.is_set() and not _blocked():
        _pending.clear()
        _deliver()
    return _local_trace


def _global_trace(frame, event, arg):
    if _is_untraced(frame.f_code.co_filename):
        return None
    return _local_trace


def preempt_start(preempt: bool) -> None:
    """Start the preemption timer if ``preempt`` is true.

    When it is false nothing happens and the rest of this module's
    functions have no effect.
    """
    global _active, _ticker, _ticker_stop, _old_trace, _mask
    if not preempt:
        return
    with _lock:
        if _active:
            return
        _mask = threading.local()
        _pending.clear()
        _ticker_stop = threading.Event()
        _ticker = threading.Thread(
            target=_tick, args=(_ticker_stop,), name="uthread-preempt", daemon=True
        )
        _ticker.start()
        _old_trace = threading.gettrace()
        threading.settrace(_global_trace)
        _active = True


def preempt_stop() -> None:
    """Stop the timer and restore the previous thread trace hook."""
    global _active, _ticker, _ticker_stop, _old_trace
    with _lock:
        if not _active:
            return
        _active = False
        threading.settrace(_old_trace)
        _old_trace = None
        if _ticker_stop is not None:
            _ticker_stop.set()
        if _ticker is not None:
            _ticker.join()
        _ticker = None
        _ticker_stop = None
        _pending.clear()


def preempt_enable() -> None:
    """Allow the calling thread to be preempted."""
    if _active:
        _mask.blocked = False


def preempt_disable() -> None:
    """Keep the calling thread from being preempted."""
    if _active:
        _mask.blocked = True


def is_active() -> bool:
    """Whether the preemption timer is running."""
    return _active


def is_disabled() -> bool:
    """Whether preemption is active but blocked for the calling thread."""
    return _active and _blocked()


@contextmanager
def disabled() -> Iterator[None]:
    """Block preemption for the block's duration, then restore the prior state."""
    was_disabled = is_disabled()
    preempt_disable()
    try:
        yield
    finally:
        if not was_disabled:
            preempt_enable()