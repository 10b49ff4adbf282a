"""Timing harness for comparing concurrency strategies on repeated HTTP GETs."""

from concurrency_bench.errors import BenchmarkError, PersistenceError, TransportError
from concurrency_bench.matrix import ResultTable, StrategyResult, run_matrix
from concurrency_bench.request import RequestDescriptor, build_request
from concurrency_bench.strategies import default_strategies

__all__ = [
    "BenchmarkError",
    "PersistenceError",
    "RequestDescriptor",
    "ResultTable",
    "StrategyResult",
    "TransportError",
    "build_request",
    "default_strategies",
    "run_matrix",
]
