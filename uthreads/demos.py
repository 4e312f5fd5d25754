"""Small programs that exercise the thread scheduler and semaphores.

Each demo writes its lines to ``out``, or to standard output when ``out`` is
``None``. All of them run without preemption, so their output is deterministic.
"""

from __future__ import annotations

import argparse
import re
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Callable, TextIO

from .scheduler import create, run, yield_
from .semaphore import Semaphore, SemaphoreError

BUFFER_SIZE = 16
DEFAULT_COUNT = 20
DEFAULT_BUFFER_COUNT = 1000
DEFAULT_MAXPRIME = 1000

_UINT_MASK = 0xFFFFFFFF
_SIZE_MASK = 0xFFFFFFFFFFFFFFFF
_LONG_MAX = 2**63 - 1
_LONG_MIN = -(2**63)
_NUMBER = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")

Writer = Callable[[str], None]


def rand_r(seed: int) -> tuple[int, int]:
    """Reentrant pseudo-random generator.

    Returns ``(value, next_seed)``; ``value`` lies in ``[0, 2**31)`` and the
    seed is treated as a 32-bit unsigned integer.
    """
    state = seed & _UINT_MASK
    result = 0
    for shift, modulus in ((0, 2048), (10, 1024), (10, 1024)):
        state = (state * 1103515245 + 12345) & _UINT_MASK
        result = (result << shift) ^ ((state >> 16) % modulus)
    return result, state


def parse_count(text: str) -> int:
    """Read a number the way the demos' command lines do.

    Accepts decimal, ``0x`` hexadecimal and ``0`` octal prefixes, ignores
    trailing garbage and yields 0 when no digits are found. The result is
    reduced to a 32-bit unsigned integer. Raises ``ValueError`` when the
    value is out of the signed 64-bit range.
    """
    match = _NUMBER.match(text)
    if match is None:
        value = 0
    else:
        sign, digits = match.groups()
        if digits[:2].lower() == "0x":
            value = int(digits[2:], 16)
        elif digits.startswith("0"):
            value = int(digits, 8)
        else:
            value = int(digits, 10)
        if sign == "-":
            value = -value
    if value >= _LONG_MAX or value <= _LONG_MIN:
        raise ValueError("strtol: Numerical result out of range")
    return value & _UINT_MASK


def _writer(out: TextIO | None) -> Writer:
    stream = sys.stdout if out is None else out

    def write(line: str) -> None:
        stream.write(line + "\n")

    return write


def _discard(*sems: Semaphore) -> None:
    for sem in sems:
        with suppress(SemaphoreError):
            sem.destroy()


def hello(out: TextIO | None = None) -> None:
    """Run a single thread that greets the world."""
    write = _writer(out)

    def greet(_arg: object) -> None:
        write("Hello world!")

    run(False, greet, None)


def yield_order(out: TextIO | None = None) -> None:
    """Create and yield between three threads; prints thread1, thread2, thread3."""
    write = _writer(out)

    def thread3(_arg: object) -> None:
        yield_()
        write("thread3")

    def thread2(_arg: object) -> None:
        create(thread3, None)
        yield_()
        write("thread2")

    def thread1(_arg: object) -> None:
        create(thread2, None)
        yield_()
        write("thread1")
        yield_()

    run(False, thread1, None)


def sem_simple(out: TextIO | None = None) -> None:
    """Order three threads with semaphores; prints thread3, thread2, thread1."""
    write = _writer(out)
    sem1, sem2, sem3 = Semaphore(0), Semaphore(0), Semaphore(0)

    def thread3(_arg: object) -> None:
        sem3.down()
        write("thread3")
        sem2.up()

    def thread2(_arg: object) -> None:
        sem2.down()
        write("thread2")
        sem1.up()

    def thread1(_arg: object) -> None:
        create(thread2, None)
        create(thread3, None)
        sem3.up()
        sem1.down()
        write("thread1")

    run(False, thread1, None)
    _discard(sem1, sem2, sem3)


def sem_count(out: TextIO | None = None, maxcount: int = DEFAULT_COUNT) -> None:
    """Two threads print 0 .. maxcount - 1 in turn, one number at a time."""
    write = _writer(out)
    sem1, sem2 = Semaphore(0), Semaphore(0)
    x = 0

    def thread2(_arg: object) -> None:
        nonlocal x
        while x < maxcount:
            write(f"thread 2, x = {x}")
            x += 1
            sem1.up()
            sem2.down()

    def thread1(_arg: object) -> None:
        nonlocal x
        create(thread2, None)
        while x < maxcount:
            sem1.down()
            write(f"thread 1, x = {x}")
            x += 1
            sem2.up()

    run(False, thread1, None)
    _discard(sem1, sem2)


@dataclass
class _Buffer:
    write: Writer
    maxcount: int
    cons_seed: int
    prod_seed: int
    empty: Semaphore = field(default_factory=lambda: Semaphore(0))
    full: Semaphore = field(default_factory=lambda: Semaphore(BUFFER_SIZE))
    mutex: Semaphore = field(default_factory=lambda: Semaphore(1))
    slots: list[int] = field(default_factory=lambda: [0] * BUFFER_SIZE)
    size: int = 0
    head: int = 0
    tail: int = 0


def _consumer(buf: _Buffer) -> None:
    taken = 0
    while taken < (buf.maxcount - 1) & _SIZE_MASK:
        value, buf.cons_seed = rand_r(buf.cons_seed)
        wanted = min(value % BUFFER_SIZE + 1, (buf.maxcount - taken - 1) & _SIZE_MASK)
        buf.write(f"Consumer wants to get {wanted} items out of buffer...")
        for _ in range(wanted):
            buf.empty.down()
            taken = buf.slots[buf.tail]
            buf.write(f"Consumer is taking {taken} out of buffer")
            buf.tail = (buf.tail + 1) % BUFFER_SIZE
            buf.mutex.down()
            buf.size -= 1
            buf.mutex.up()
            buf.full.up()


def _producer(buf: _Buffer) -> None:
    create(_consumer, buf)
    count = 0
    while count < buf.maxcount:
        value, buf.prod_seed = rand_r(buf.prod_seed)
        wanted = min(value % BUFFER_SIZE + 1, buf.maxcount - count)
        buf.write(f"Producer wants to put {wanted} items into buffer...")
        for _ in range(wanted):
            buf.full.down()
            buf.write(f"Producer is putting {count} into buffer")
            buf.slots[buf.head] = count
            count += 1
            buf.head = (buf.head + 1) % BUFFER_SIZE
            buf.mutex.down()
            buf.size += 1
            buf.mutex.up()
            buf.empty.up()


def sem_buffer(
    out: TextIO | None = None,
    maxcount: int = DEFAULT_BUFFER_COUNT,
    cons_seed: int = 1,
    prod_seed: int = 2,
) -> None:
    """Producer and consumer share a bounded buffer guarded by semaphores.

    The producer puts ``maxcount`` values in batches of random size; the
    consumer takes them out in batches of its own random size.
    """
    buf = _Buffer(_writer(out), maxcount, cons_seed, prod_seed)
    run(False, _producer, buf)
    _discard(buf.empty, buf.full, buf.mutex)


@dataclass
class _Channel:
    value: int = 0
    produce: Semaphore = field(default_factory=lambda: Semaphore(0))
    consume: Semaphore = field(default_factory=lambda: Semaphore(0))


@dataclass
class _Filter:
    left: _Channel
    right: _Channel
    prime: int


def sem_prime(out: TextIO | None = None, maxprime: int = DEFAULT_MAXPRIME) -> None:
    """Find the primes up to ``maxprime`` with a pipeline of filter threads."""
    write = _writer(out)

    def source(channel: _Channel) -> None:
        for number in range(2, maxprime + 1):
            channel.value = number
            channel.consume.up()
            channel.produce.down()
        channel.value = -1
        channel.consume.up()
        channel.produce.down()

    def sieve(stage: _Filter) -> None:
        # Channel semaphores are left to the garbage collector: the upstream
        # thread may still have to take its last produce token.
        while True:
            stage.left.consume.down()
            value = stage.left.value
            stage.left.produce.up()
            if value == -1 or value % stage.prime != 0:
                stage.right.value = value
                stage.right.consume.up()
                stage.right.produce.down()
            if value == -1:
                break

    def sink(_arg: object) -> None:
        channel = _Channel()
        create(source, channel)
        while True:
            channel.consume.down()
            value = channel.value
            channel.produce.up()
            if value == -1:
                break
            write(f"{value} is prime.")
            right = _Channel()
            create(sieve, _Filter(channel, right, value))
            channel = right

    run(False, sink, None)


_DEMOS: dict[str, Callable[..., None]] = {
    "hello": hello,
    "yield": yield_order,
    "simple": sem_simple,
    "count": sem_count,
    "buffer": sem_buffer,
    "prime": sem_prime,
}


def main(argv: list[str] | None = None) -> int:
    """Run one demo chosen on the command line; returns the exit status."""
    parser = argparse.ArgumentParser(
        prog="uthreads-demo", description="Run a user-level thread demo."
    )
    sub = parser.add_subparsers(dest="demo", required=True)
    sub.add_parser("hello", help="a single thread says hello")
    sub.add_parser("yield", help="three threads yielding to each other")
    sub.add_parser("simple", help="three threads ordered by semaphores")
    count = sub.add_parser("count", help="two threads counting in turn")
    count.add_argument("maxcount", nargs="?")
    buffer = sub.add_parser("buffer", help="producer and consumer on a buffer")
    buffer.add_argument("maxcount", nargs="?")
    buffer.add_argument("cons_seed", nargs="?")
    buffer.add_argument("prod_seed", nargs="?")
    prime = sub.add_parser("prime", help="prime sieve pipeline")
    prime.add_argument("maxprime", nargs="?")

    args = parser.parse_args(argv)
    options = {k: v for k, v in vars(args).items() if k != "demo" and v is not None}
    try:
        numbers = {name: parse_count(text) for name, text in options.items()}
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    _DEMOS[args.demo](sys.stdout, **numbers)
    return 0