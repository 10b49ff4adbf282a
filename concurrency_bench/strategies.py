import asyncio
import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor

from concurrency_bench import config
from concurrency_bench.combinators import Deferred, await_indefinitely, combine_all
from concurrency_bench.contexts import TaskPerCallContext
from concurrency_bench.request import RequestDescriptor
from concurrency_bench.transport import afetch, fetch, make_async_client, make_session

logger = logging.getLogger(__name__)


def check_call_count(call_count) -> int:
    if isinstance(call_count, bool) or not isinstance(call_count, int):
        raise ValueError(f"call count must be an int, got {call_count!r}")
    if call_count < 0:
        raise ValueError(f"call count must be >= 0, got {call_count}")
    return call_count


class Strategy(ABC):
    """One way of issuing ``call_count`` identical GETs.

    ``execute`` owns the clock: the window covers client/pool setup, every
    call and the teardown of whatever ``run`` opened.
    """

    key = ""
    label = ""
    column = ""

    def execute(self, request: RequestDescriptor, call_count: int) -> int:
        check_call_count(call_count)
        t0 = time.perf_counter()
        self.run(request, call_count)
        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        logger.info("%s Execution Time: %d ms", self.label, elapsed_ms)
        return elapsed_ms

    @abstractmethod
    def run(self, request: RequestDescriptor, call_count: int) -> None:
        pass

    def log_call(self, length: int) -> int:
        logger.info("%s call: %d", self.label, length)
        return length

    def __repr__(self):
        return f"<{type(self).__name__} {self.key}>"


class SequentialStrategy(Strategy):
    key = "sequential"
    label = "Synchronous"
    column = "Sync Time (ms)"

    def run(self, request, call_count):
        with make_session() as s:
            for _ in range(call_count):
                self.log_call(fetch(s, request))


class ThreadPoolStrategy(Strategy):
    key = "thread_pool"
    label = "Thread Pool Async"
    column = "Platform Thread Time (ms)"

    def __init__(self, pool_size: int = config.POOL_SIZE):
        if pool_size < 1:
            raise ValueError("pool_size must be >= 1")
        self.pool_size = pool_size
        self.last_session_count = 0

    def run(self, request, call_count):
        # requests sessions are not thread-safe: one per worker thread
        local = threading.local()
        sessions = []
        sessions_lock = threading.Lock()

        def open_session():
            local.session = make_session()
            with sessions_lock:
                sessions.append(local.session)

        def call():
            return self.log_call(fetch(local.session, request))

        try:
            with ThreadPoolExecutor(max_workers=self.pool_size, initializer=open_session) as ex:
                futures = [ex.submit(call) for _ in range(call_count)]
                try:
                    for f in futures:
                        f.result()
                except BaseException:
                    # queued calls never start; running ones finish before the pool exits
                    for f in futures:
                        f.cancel()
                    raise
        finally:
            for s in sessions:
                s.close()
        self.last_session_count = len(sessions)


class TaskPerCallStrategy(Strategy):
    key = "task_per_call"
    label = "Task Per Call Async"
    column = "Virtual Thread Time (ms)"

    def __init__(self):
        self.last_peak_active = 0

    def run(self, request, call_count):
        asyncio.run(self._run(request, call_count))

    async def _run(self, request, call_count):
        async with make_async_client(request, unbounded=True) as client, TaskPerCallContext() as ctx:
            for _ in range(call_count):
                ctx.spawn(self._call(client, request))
            await ctx.join()
        self.last_peak_active = ctx.peak_active

    async def _call(self, client, request):
        return self.log_call(await afetch(client, request))


class CombinatorStrategy(Strategy):
    """All calls as deferred values joined by ``combine_all`` on one event loop.

    The client keeps httpx's default connection limits.
    """

    key = "combinator"
    label = "Combinator Async"
    column = "Mutiny Time (ms)"

    def run(self, request, call_count):
        await_indefinitely(Deferred.of(self._run, request, call_count))

    async def _run(self, request, call_count):
        async with make_async_client(request) as client:
            await self._combine(client, request, call_count)

    def _combine(self, client, request, call_count, spawn=None) -> Deferred:
        calls = [Deferred.of(afetch, client, request).on_item(self.log_call) for _ in range(call_count)]
        return combine_all(calls, spawn=spawn).map(self._log_combined)

    def _log_combined(self, responses):
        logger.info("%s combined responses: %d", self.label, len(responses))
        return responses


class TaskPerCallCombinatorStrategy(CombinatorStrategy):
    """Same combinator, run on a ``TaskPerCallContext`` through a client
    without a connection ceiling.

    Each constituent and the aggregate that combines them get their own task
    on the context, so ``call_count + 1`` tasks are spawned per run.
    """

    key = "task_per_call_combinator"
    label = "Task Per Call + Combinator Async"
    column = "Virtual + Mutiny Time (ms)"

    def __init__(self):
        self.last_spawned = 0
        self.last_peak_active = 0

    async def _run(self, request, call_count):
        async with make_async_client(request, unbounded=True) as client, TaskPerCallContext() as ctx:
            combined = self._combine(client, request, call_count, spawn=ctx.spawn)
            await ctx.spawn(combined.resolve())
        self.last_spawned = ctx.spawned
        self.last_peak_active = ctx.peak_active


def default_strategies(pool_size: int = config.POOL_SIZE) -> list[Strategy]:
    return [
        SequentialStrategy(),
        ThreadPoolStrategy(pool_size),
        TaskPerCallStrategy(),
        CombinatorStrategy(),
        TaskPerCallCombinatorStrategy(),
    ]
