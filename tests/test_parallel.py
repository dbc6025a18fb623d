"""
Tests for the parallel execution strategies.

Tests cover:
- SequentialStrategy ordering and Future wrapping
- ThreadPoolStrategy ordering under concurrency
- create_strategy selection
"""

import threading
import time

import pytest

from docreader.parallel import (
    ExecutorStrategy,
    SequentialStrategy,
    ThreadPoolStrategy,
    create_strategy,
)


class TestSequentialStrategy:
    """Test SequentialStrategy for deterministic execution."""

    def test_sequential_map_returns_results_in_order(self):
        """Sequential strategy processes items in submission order."""
        strategy = SequentialStrategy()
        assert strategy.map(lambda x: x * 2, [1, 2, 3, 4, 5]) == [2, 4, 6, 8, 10]

    def test_sequential_submit_returns_completed_future(self):
        """Submit returns a Future that is already complete."""
        strategy = SequentialStrategy()
        future = strategy.submit(lambda x: x + 10, 5)
        assert future.done()
        assert future.result() == 15

    def test_sequential_submit_captures_exceptions(self):
        """Submit captures exceptions in the Future."""
        strategy = SequentialStrategy()

        def raise_error(x):
            raise ValueError("Test error")

        future = strategy.submit(raise_error, 1)
        assert future.done()
        with pytest.raises(ValueError, match="Test error"):
            future.result()

    def test_sequential_max_workers_is_one(self):
        assert SequentialStrategy().max_workers == 1


class TestThreadPoolStrategy:
    """Test ThreadPoolStrategy for concurrent execution."""

    def test_map_preserves_input_order(self):
        """Results come back in input order even when later items finish first."""
        def slow_for_small(x):
            time.sleep(0.01 * (5 - x))
            return x * x

        with ThreadPoolStrategy(max_workers=4) as strategy:
            assert strategy.map(slow_for_small, [1, 2, 3, 4]) == [1, 4, 9, 16]

    def test_map_uses_multiple_threads(self):
        """Work runs on pool threads, not the caller's thread."""
        caller = threading.get_ident()
        with ThreadPoolStrategy(max_workers=2) as strategy:
            idents = strategy.map(lambda _: threading.get_ident(), range(4))
        assert caller not in idents

    def test_submit_returns_future(self):
        with ThreadPoolStrategy(max_workers=1) as strategy:
            assert strategy.submit(lambda a, b: a + b, 2, 3).result() == 5

    def test_map_propagates_exceptions(self):
        def fail(x):
            raise RuntimeError("boom")

        with ThreadPoolStrategy(max_workers=2) as strategy:
            with pytest.raises(RuntimeError, match="boom"):
                strategy.map(fail, [1, 2])


class TestCreateStrategy:
    """Test the strategy factory."""

    def test_sequential_when_not_parallel(self):
        assert isinstance(create_strategy(False), SequentialStrategy)

    def test_thread_pool_when_parallel(self):
        with create_strategy(True, max_workers=3) as strategy:
            assert isinstance(strategy, ThreadPoolStrategy)
            assert strategy.max_workers == 3

    def test_both_implement_interface(self):
        assert issubclass(SequentialStrategy, ExecutorStrategy)
        assert issubclass(ThreadPoolStrategy, ExecutorStrategy)
