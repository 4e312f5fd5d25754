"""FIFO queue of arbitrary objects, used for ready lists and wait lists."""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Iterator


class QueueError(Exception):
    """Raised when a queue operation cannot be carried out."""


class Queue:
    """First-in first-out queue.

    Enqueueing, dequeueing and taking the length are O(1); deleting and
    iterating are O(n). ``None`` is never a valid item.
    """

    __slots__ = ("_items", "_destroyed")

    def __init__(self) -> None:
        self._items: deque[Any] = deque()
        self._destroyed = False

    def _check_alive(self) -> None:
        if self._destroyed:
            raise QueueError("queue has been destroyed")

    def enqueue(self, data: Any) -> None:
        """Append ``data`` at the back of the queue."""
        self._check_alive()
        if data is None:
            raise QueueError("cannot enqueue None")
        self._items.append(data)

    def dequeue(self) -> Any:
        """Remove and return the oldest item."""
        self._check_alive()
        try:
            return self._items.popleft()
        except IndexError:
            raise QueueError("queue is empty") from None

    def delete(self, data: Any) -> None:
        """Remove the oldest occurrence of the very object ``data``."""
        self._check_alive()
        if data is None:
            raise QueueError("cannot delete None")
        for index, item in enumerate(self._items):
            if item is data:
                del self._items[index]
                return
        raise QueueError("item not found in queue")

    def iterate(self, func: Callable[[Queue, Any], object]) -> None:
        """Call ``func(queue, item)`` on every item, oldest first.

        The items are taken from a snapshot made before the first call, so
        ``func`` may delete items from the queue while it runs.
        """
        self._check_alive()
        if func is None or not callable(func):
            raise QueueError("iterate needs a callable")
        for item in list(self._items):
            func(self, item)

    def destroy(self) -> None:
        """Retire the queue; it must be empty. Later operations raise."""
        self._check_alive()
        if self._items:
            raise QueueError("cannot destroy a non-empty queue")
        self._destroyed = True

    def __len__(self) -> int:
        self._check_alive()
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        self._check_alive()
        return iter(list(self._items))

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else f"{len(self._items)} items"
        return f"<Queue {state}>"