from collections import deque
from itertools import pairwise

import pytest

from uthreads.scheduler import create, run, yield_
from uthreads.semaphore import Semaphore, SemaphoreError


def test_count_changes_outside_threads():
    sem = Semaphore(3)
    sem.down()
    assert sem.count == 2
    sem.up()
    sem.up()
    assert sem.count == 4
    assert len(sem) == 0


@pytest.mark.parametrize("bad", [-1, 1.5, "2"])
def test_invalid_count_raises(bad):
    with pytest.raises(SemaphoreError):
        Semaphore(bad)


def test_down_on_empty_outside_thread_raises():
    sem = Semaphore(0)
    with pytest.raises(SemaphoreError):
        sem.down()
    assert sem.count == 0


def test_simple_ordering():
    out = []
    sem1, sem2, sem3 = Semaphore(0), Semaphore(0), Semaphore(0)

    def thread3(_):
        sem3.down()
        out.append("thread3")
        sem2.up()

    def thread2(_):
        sem2.down()
        out.append("thread2")
        sem1.up()

    def thread1(_):
        create(thread2, None)
        create(thread3, None)
        sem3.up()
        sem1.down()
        out.append("thread1")

    run(False, thread1, None)
    assert out == ["thread3", "thread2", "thread1"]
    assert [sem.count for sem in (sem1, sem2, sem3)] == [0, 0, 0]
    assert [len(sem) for sem in (sem1, sem2, sem3)] == [0, 0, 0]
    for sem in (sem1, sem2, sem3):
        sem.destroy()


def test_two_threads_count_in_turn():
    maxcount = 20
    sem1, sem2 = Semaphore(0), Semaphore(0)
    state = {"x": 0}
    out = []

    def thread2(_):
        while state["x"] < maxcount:
            out.append(("thread 2", state["x"]))
            state["x"] += 1
            sem1.up()
            sem2.down()

    def thread1(_):
        create(thread2, None)
        while state["x"] < maxcount:
            sem1.down()
            out.append(("thread 1", state["x"]))
            state["x"] += 1
            sem2.up()

    run(False, thread1, None)
    assert [x for _, x in out] == list(range(maxcount))
    assert all(a[0] != b[0] for a, b in pairwise(out))
    assert len(sem1) == 0
    assert len(sem2) == 0


def test_up_wakes_oldest_waiter_first():
    sem = Semaphore(0)
    woken = []

    def waiter(n):
        sem.down()
        woken.append(n)

    def main(_):
        for n in range(3):
            create(waiter, n)
        yield_()
        for _ in range(3):
            sem.up()

    run(False, main, None)
    assert woken == [0, 1, 2]
    assert sem.count == 0


def test_bounded_buffer_preserves_order():
    size = 4
    total = 25
    empty = Semaphore(0)
    full = Semaphore(size)
    buffer = deque()
    consumed = []
    fill = []

    def consumer(_):
        for _ in range(total):
            empty.down()
            consumed.append(buffer.popleft())
            full.up()

    def producer(_):
        create(consumer, None)
        for i in range(total):
            full.down()
            buffer.append(i)
            fill.append(len(buffer))
            empty.up()

    run(False, producer, None)
    assert consumed == list(range(total))
    assert max(fill) <= size
    assert full.count == size


def test_destroy_refused_while_threads_wait():
    sem = Semaphore(0)
    seen = {}

    def waiter(_):
        sem.down()

    def main(_):
        create(waiter, None)
        yield_()
        seen["waiting"] = len(sem)
        try:
            sem.destroy()
        except SemaphoreError:
            seen["refused"] = True
        sem.up()

    run(False, main, None)
    assert seen == {"waiting": 1, "refused": True}
    assert len(sem) == 0
    sem.destroy()
    with pytest.raises(SemaphoreError):
        sem.up()
    with pytest.raises(SemaphoreError):
        sem.destroy()