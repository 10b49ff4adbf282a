from concurrency_bench import config
from concurrency_bench.request import RequestDescriptor
from concurrency_bench.strategies import default_strategies


def run_demo(request: RequestDescriptor, call_count: int = config.DEMO_CALLS, strategies=None) -> dict[str, int]:
    """Run each strategy once, printing a divider between them."""
    strategies = strategies if strategies is not None else default_strategies()
    timings = {}
    for i, strategy in enumerate(strategies):
        if i:
            print(config.DIVIDER, flush=True)
        timings[strategy.key] = strategy.execute(request, call_count)
    return timings
