"""
Execution strategies for per-chunk LLM work.

Implements the Strategy Pattern to separate "what to run per chunk" from
"how to run it". Reading strategies map one function over their chunks
through an ExecutorStrategy; tests inject SequentialStrategy for
deterministic call order.

Both implementations return results in input order, so the collection
step doubles as the barrier before a merge call.

Usage:
    # Production (parallel execution)
    with ThreadPoolStrategy(max_workers=4) as executor:
        answers = executor.map(ask_chunk, chunks)

    # Testing (deterministic, sequential execution)
    answers = SequentialStrategy().map(ask_chunk, chunks)
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, TypeVar

from docreader.config import PARALLEL_MAX_WORKERS

T = TypeVar('T')
R = TypeVar('R')


class ExecutorStrategy(ABC):
    """
    How a reading strategy runs its per-chunk calls.

    Used as a context manager, the strategy shuts down on exit.

    Attributes:
        max_workers: Upper bound on concurrent calls (1 when sequential)
    """

    max_workers: int

    @abstractmethod
    def submit(self, fn: Callable[..., R], *args) -> Future:
        """Schedule fn(*args); the Future holds its result or exception."""

    @abstractmethod
    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """
        Apply fn to every item and collect the results in input order.

        Blocks until every call has finished. An exception raised by fn is
        re-raised here.
        """

    @abstractmethod
    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """Release workers; pending calls finish first when wait is True."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
        return False


class ThreadPoolStrategy(ExecutorStrategy):
    """
    Thread-based parallel execution strategy.

    LLM calls spend their time waiting on the network, so threads give real
    concurrency despite the GIL. The worker count is bounded to respect
    provider rate limits.

    Args:
        max_workers: Maximum concurrent threads. Defaults to
                    PARALLEL_MAX_WORKERS (min(cpu_count, 4) unless overridden
                    by DOCREADER_MAX_WORKERS).

    Example:
        with ThreadPoolStrategy(max_workers=2) as executor:
            summaries = executor.map(summarize, chunks)
    """

    def __init__(self, max_workers: int | None = None):
        if max_workers is None:
            max_workers = PARALLEL_MAX_WORKERS
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="docreader")
        self.max_workers = max_workers

    def submit(self, fn: Callable[..., R], *args) -> Future:
        return self._executor.submit(fn, *args)

    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """Run fn over items on the pool; results keep submission order."""
        return list(self._executor.map(fn, items))

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)


class SequentialStrategy(ExecutorStrategy):
    """
    Sequential execution strategy for testing and debugging.

    Runs the same code path single-threaded: deterministic call order, no
    thread interleaving, easy to step through. Can replace
    ThreadPoolStrategy without changing results.
    """

    def __init__(self):
        self.max_workers = 1

    def submit(self, fn: Callable[..., R], *args) -> Future:
        """
        Execute function synchronously and return completed Future.

        The result (or exception) is wrapped in a Future for interface
        compatibility.
        """
        future: Future = Future()
        try:
            future.set_result(fn(*args))
        except Exception as e:
            future.set_exception(e)
        return future

    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        return [fn(item) for item in items]

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """No-op for sequential strategy (no resources to release)."""


def create_strategy(use_parallel: bool, max_workers: int | None = None) -> ExecutorStrategy:
    """
    Pick the execution strategy for a reading run.

    Args:
        use_parallel: True for a ThreadPoolStrategy, False for sequential
        max_workers: Thread cap for the pool (ignored when sequential)

    Returns:
        A new ExecutorStrategy; use it as a context manager to release threads
    """
    if use_parallel:
        return ThreadPoolStrategy(max_workers=max_workers)
    return SequentialStrategy()
