import asyncio
import logging

logger = logging.getLogger(__name__)


class TaskPerCallContext:
    """Runs every submitted unit of work as its own asyncio task.

    There is no ceiling: ``n`` submissions mean up to ``n`` tasks in flight.
    ``active`` counts units whose body has started and not yet returned;
    ``peak_active`` is the highest value it reached.
    Use as an async context manager; leaving the block cancels whatever is
    still pending, so nothing outlives the strategy run that created it.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self.spawned = 0
        self.active = 0
        self.peak_active = 0

    async def _track(self, coro):
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            return await coro
        finally:
            self.active -= 1

    def spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._track(coro))
        # a unit cancelled before it starts never awaits coro
        task.add_done_callback(lambda t: t.cancelled() and coro.close())
        self._tasks.add(task)
        self.spawned += 1
        return task

    async def join(self) -> None:
        """Wait for every spawned task; the first failure is raised."""
        if not self._tasks:
            return
        done, _ = await asyncio.wait(self._tasks, return_when=asyncio.FIRST_EXCEPTION)
        for t in done:
            if not t.cancelled() and t.exception() is not None:
                raise t.exception()

    async def aclose(self) -> None:
        pending = [t for t in self._tasks if not t.done()]
        for t in pending:
            t.cancel()
        if pending:
            logger.debug("Cancelling %d outstanding tasks", len(pending))
        # retrieve every outcome, failed siblings included
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
