"""Execution contexts that hand a single logical CPU between each other.

Every context owns an operating-system thread, but only one context runs at a
time: switching resumes the target and parks the caller until it is resumed.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable

from .preempt import disabled, preempt_disable, preempt_enable

_ids = itertools.count(1)


class ContextError(Exception):
    """Raised on an invalid context operation."""


class Context:
    """A resumable execution context.

    ``Context(None, None)`` captures the calling thread, typically the
    scheduler. ``Context(func, arg)`` prepares a context that runs
    ``func(arg)`` the first time it is resumed. When ``func`` returns, the
    context is finished and ``link``, if set, is resumed. An exception
    escaping ``func`` is kept in ``error``.
    """

    def __init__(self, func: Callable[[Any], object] | None, arg: Any) -> None:
        self._func = func
        self._arg = arg
        self._wakeup = threading.Semaphore(0)
        self._done = threading.Event()
        self.link: Context | None = None
        self.error: BaseException | None = None
        if func is None:
            self._thread = threading.current_thread()
            self._started = True
        else:
            if not callable(func):
                raise ContextError("context function must be callable")
            self._thread = threading.Thread(
                target=self._bootstrap,
                name=f"uthread-context-{next(_ids)}",
                daemon=True,
            )
            self._started = False

    def _bootstrap(self) -> None:
        preempt_enable()
        try:
            self._func(self._arg)
        except BaseException as exc:
            self.error = exc
        finally:
            preempt_disable()
            self._done.set()
            if self.link is not None:
                self.link.resume()

    def resume(self) -> None:
        """Let this context run, starting it on first use."""
        if self._done.is_set():
            raise ContextError("cannot resume a finished context")
        if not self._started:
            self._started = True
            self._thread.start()
        else:
            self._wakeup.release()

    def suspend(self) -> None:
        """Park the calling thread, which must own this context, until resumed."""
        if threading.current_thread() is not self._thread:
            raise ContextError("a context can only be suspended from its own thread")
        self._wakeup.acquire()

    def switch(self, next_ctx: Context) -> None:
        """Save the running context in ``self`` and run ``next_ctx``.

        Returns once ``self`` is resumed again.
        """
        if threading.current_thread() is not self._thread:
            raise ContextError("can only switch away from the running context")
        with disabled():
            next_ctx.resume()
            self.suspend()

    def finished(self) -> bool:
        """Whether the context's function has returned."""
        return self._done.is_set()

    def __repr__(self) -> str:
        state = "finished" if self.finished() else "live"
        return f"<Context {self._thread.name} {state}>"