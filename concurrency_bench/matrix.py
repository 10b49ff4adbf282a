import logging
from typing import Callable, NamedTuple, Optional, Sequence

from concurrency_bench import config
from concurrency_bench.request import RequestDescriptor
from concurrency_bench.strategies import Strategy, check_call_count, default_strategies

logger = logging.getLogger(__name__)


class StrategyResult(NamedTuple):
    strategy: str
    call_count: int
    elapsed_ms: int


class ResultTable(NamedTuple):
    """Rows of ``(call_count, ms, ms, ...)`` with one timing per strategy column."""

    headers: tuple[str, ...]
    rows: tuple[tuple[int, ...], ...]
    strategies: tuple[str, ...] = ()

    @property
    def call_counts(self) -> list[int]:
        return [row[0] for row in self.rows]

    def column(self, header: str) -> list[int]:
        idx = self.headers.index(header)
        return [row[idx] for row in self.rows]

    def results(self):
        keys = self.strategies or self.headers[1:]
        for row in self.rows:
            for key, elapsed in zip(keys, row[1:]):
                yield StrategyResult(key, row[0], elapsed)


def run_matrix(request: RequestDescriptor, call_counts: Sequence[int],
               strategies: Optional[Sequence[Strategy]] = None,
               on_result: Optional[Callable[[StrategyResult], None]] = None) -> ResultTable:
    """Run every strategy for every call count, strictly one after another.

    Any strategy failure propagates; no partial table is returned.
    """
    strategies = list(strategies) if strategies is not None else default_strategies()
    if not strategies:
        raise ValueError("at least one strategy is required")
    call_counts = [check_call_count(n) for n in call_counts]

    rows = []
    for n in call_counts:
        row = [n]
        for strategy in strategies:
            elapsed = strategy.execute(request, n)
            row.append(elapsed)
            if on_result is not None:
                on_result(StrategyResult(strategy.key, n, elapsed))
        rows.append(tuple(row))
        logger.debug("Row complete for %d calls: %s", n, row)

    return ResultTable(
        headers=(config.CALLS_HEADER, *(s.column for s in strategies)),
        rows=tuple(rows),
        strategies=tuple(s.key for s in strategies),
    )
