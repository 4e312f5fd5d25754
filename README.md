# uthreads

A small library of user-level threads. Threads run one at a time under a
first-in, first-out scheduler. They hand over control by yielding, by blocking
on a semaphore, or by finishing. Optional preemption makes the running thread
yield at regular intervals.

Each thread runs on its own operating-system thread. Only one of them holds
the logical CPU at a time, and control passes explicitly from one to the next.

## Installing

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Threads: `uthreads.scheduler`

`run(preempt, func, arg=None)` makes the calling thread the idle scheduler and
starts `func(arg)` as the first thread. It returns when no thread is ready any
more. If `preempt` is true, a timer preempts running threads at 100 Hz. If any
thread raised an exception, `run` raises `UThreadError` after scheduling ends,
chained to the first such exception. Calling `run` while the scheduler is
already running raises `UThreadError`.

```python
from uthreads import scheduler

def child(name):
    scheduler.yield_()
    print("child", name)

def first(arg):
    scheduler.create(child, "b")
    scheduler.yield_()
    print("first")

scheduler.run(False, first, None)
```

These functions are for use while the scheduler is running:

- `create(func, arg=None)` puts a new thread at the end of the ready queue and
  returns its `ThreadControlBlock`.
- `yield_()` puts the running thread at the end of the ready queue and lets the
  other ready threads run first. Outside a user-level thread it does nothing.
- `exit_()` ends the running thread at once.
- `current()` returns the running thread's `ThreadControlBlock`, or `None`
  outside a user-level thread.
- `block()` suspends the running thread until `unblock(tcb)` puts it back on
  the ready queue. `unblock(None)` does nothing.

Misuse, such as calling `create` with no scheduler running, raises
`UThreadError`.

## Semaphores: `uthreads.semaphore`

```python
from uthreads.semaphore import Semaphore

sem = Semaphore(0)  # the count must be a non-negative int
sem.up()            # release a resource; wakes the oldest waiter and yields to it
sem.down()          # take a resource; blocks the calling thread while none is free
sem.count           # resources currently available
len(sem)            # number of threads blocked on it
sem.destroy()       # raises SemaphoreError while threads are still blocked
```

A thread that needs to block has to be a user-level thread. If `down` has to
wait outside one, it raises `SemaphoreError`. After `destroy`, every operation
raises `SemaphoreError`.

## Queue: `uthreads.queue`

`Queue` is the FIFO that the scheduler and semaphores are built on:

- `enqueue(item)` adds an item at the back.
- `dequeue()` removes and returns the oldest item.
- `delete(item)` removes the oldest entry that is the very object `item`.
- `iterate(func)` calls `func(queue, item)` for each item, oldest first. It is
  safe against deletions made during the walk.
- `len()` and iteration work as usual.
- `destroy()` retires an empty queue.

`None` cannot be enqueued or deleted. Each of the following raises
`QueueError`:

- dequeueing from an empty queue
- deleting a missing item
- destroying a non-empty queue
- using a destroyed queue

## Lower layers

`uthreads.context.Context` is a resumable execution context.
`Context(func, arg)` runs `func(arg)` the first time it is resumed.
`Context(None, None)` captures the calling thread. The methods are:

- `switch(next_ctx)` runs `next_ctx` and returns once the caller is resumed.
- `resume()` and `suspend()` are the halves that `switch` is built from.
- `finished()` reports whether the function has returned.

Invalid operations raise `ContextError`.

`uthreads.preempt` holds the preemption timer:

- `preempt_start(preempt)` and `preempt_stop()` start and stop it.
- `preempt_enable()` and `preempt_disable()` allow or block preemption for the
  calling thread.
- `is_active()` and `is_disabled()` report the current state.
- The `disabled()` context manager blocks preemption for the duration of a
  `with` block.

Preemption works through a thread trace hook. A thread is preempted only
between lines of Python code, not while it is inside a blocking call.

## Demonstration programs

The `uthreads-demo` command runs one of the demos in `uthreads.demos` without
preemption:

```
uthreads-demo hello
uthreads-demo yield
uthreads-demo simple
uthreads-demo count [MAXCOUNT]
uthreads-demo buffer [MAXCOUNT [CONS_SEED [PROD_SEED]]]
uthreads-demo prime [MAXPRIME]
```

| Demo | What it does |
| --- | --- |
| `hello` | Prints `Hello world!` from a single thread. |
| `yield` | Three threads yield to each other and print `thread1`, `thread2`, `thread3`. |
| `simple` | Three threads ordered by semaphores print `thread3`, `thread2`, `thread1`. |
| `count` | Two threads take turns printing 0 up to MAXCOUNT−1 (default 20). |
| `buffer` | A producer and a consumer share a 16-slot buffer in random-sized batches. The defaults are 1000 values and seeds 1 and 2. |
| `prime` | A pipeline of filter threads prints the primes up to MAXPRIME (default 1000). |

Numeric arguments accept decimal, `0x` hexadecimal and leading-`0` octal.

The same demos can be called from Python: `hello(out)`, `yield_order(out)`,
`sem_simple(out)`, `sem_count(out, maxcount)`,
`sem_buffer(out, maxcount, cons_seed, prod_seed)` and `sem_prime(out, maxprime)`.
Each one writes its lines to `out`, or to standard output when `out` is `None`.

## What it does not do

Threads do not run in parallel: only one thread makes progress at any moment.
There are no mutexes, condition variables or thread joins beyond what the
semaphores provide. A thread cannot be cancelled from outside.