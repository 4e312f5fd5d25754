import pytest

from uthreads.queue import Queue, QueueError


def test_create_is_empty():
    q = Queue()
    assert len(q) == 0
    assert list(q) == []


def test_enqueue_dequeue_returns_same_object():
    data = [3]
    q = Queue()
    q.enqueue(data)
    assert q.dequeue() is data
    assert len(q) == 0


def test_fifo_order():
    q = Queue()
    items = ["a", "b", "c", "d"]
    for item in items:
        q.enqueue(item)
    assert len(q) == len(items)
    assert [q.dequeue() for _ in items] == items


def test_dequeue_empty_raises():
    with pytest.raises(QueueError):
        Queue().dequeue()


def test_enqueue_none_raises():
    q = Queue()
    with pytest.raises(QueueError):
        q.enqueue(None)
    assert len(q) == 0


def test_delete_removes_oldest_identical_object():
    first, second = [1], [1]
    q = Queue()
    q.enqueue("x")
    q.enqueue(first)
    q.enqueue(second)
    q.enqueue(first)
    q.delete(first)
    remaining = list(q)
    assert len(remaining) == 3
    assert remaining[0] == "x"
    assert remaining[1] is second
    assert remaining[2] is first


def test_delete_matches_identity_not_equality():
    q = Queue()
    stored = [5]
    q.enqueue(stored)
    with pytest.raises(QueueError):
        q.delete([5])
    assert q.dequeue() is stored


def test_delete_missing_or_none_raises():
    q = Queue()
    q.enqueue("a")
    with pytest.raises(QueueError):
        q.delete("b")
    with pytest.raises(QueueError):
        q.delete(None)
    assert list(q) == ["a"]


def test_delete_last_then_enqueue_keeps_order():
    q = Queue()
    a, b, c = object(), object(), object()
    q.enqueue(a)
    q.enqueue(b)
    q.delete(b)
    q.enqueue(c)
    assert q.dequeue() is a
    assert q.dequeue() is c


def test_iterate_visits_in_order_with_queue():
    q = Queue()
    for item in (1, 2, 3):
        q.enqueue(item)
    seen = []
    q.iterate(lambda queue, data: seen.append((queue is q, data)))
    assert seen == [(True, 1), (True, 2), (True, 3)]


def test_iterate_tolerates_deletion_of_current_item():
    q = Queue()
    for item in ("keep", "drop", "keep2", "drop2"):
        q.enqueue(item)

    def prune(queue, data):
        if data.startswith("drop"):
            queue.delete(data)

    q.iterate(prune)
    assert list(q) == ["keep", "keep2"]


def test_iterate_without_callable_raises():
    q = Queue()
    with pytest.raises(QueueError):
        q.iterate(None)


def test_destroy_requires_empty_queue():
    q = Queue()
    q.enqueue(1)
    with pytest.raises(QueueError):
        q.destroy()
    assert q.dequeue() == 1
    q.destroy()
    with pytest.raises(QueueError):
        q.enqueue(2)
    with pytest.raises(QueueError):
        len(q)


def test_iter_is_snapshot():
    q = Queue()
    q.enqueue("a")
    q.enqueue("b")
    seen = []
    for item in q:
        seen.append(item)
        q.enqueue(item + item)
    assert seen == ["a", "b"]
    assert len(q) == 4