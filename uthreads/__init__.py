"""User-level threads: a FIFO scheduler, semaphores, a queue and demo programs."""

__version__ = "0.1.0"
__all__ = ["queue", "preempt", "context", "scheduler", "semaphore", "demos"]