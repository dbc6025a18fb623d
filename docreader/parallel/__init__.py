"""
Parallel execution for chunk-level LLM calls.

Components:
    ExecutorStrategy - Abstract base class defining the execution interface
    ThreadPoolStrategy - Bounded thread pool (production)
    SequentialStrategy - In-order execution (tests, use_parallel=False)
    create_strategy - Picks one of the two from a use_parallel flag

Both strategies collect results in input order, so callers can merge
partial answers deterministically regardless of completion order.
"""

from docreader.parallel.executor_strategy import (
    ExecutorStrategy,
    SequentialStrategy,
    ThreadPoolStrategy,
    create_strategy,
)

__all__ = [
    'ExecutorStrategy',
    'ThreadPoolStrategy',
    'SequentialStrategy',
    'create_strategy',
]
