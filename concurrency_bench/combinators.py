"""Lazy asynchronous values and an all-must-complete combinator.

A ``Deferred`` wraps a coroutine function; nothing is dispatched until the
value is resolved. ``combine_all`` turns many deferreds into one whose item
is the list of constituent items, in submission order, and which fails as
soon as any constituent fails (the remaining ones are cancelled).
"""
import asyncio
from typing import Any, Awaitable, Callable, Optional

Spawner = Callable[[Awaitable[Any]], "asyncio.Future[Any]"]


class Deferred:
    def __init__(self, factory: Callable[[], Awaitable[Any]]):
        self._factory = factory

    @classmethod
    def of(cls, fn, *args) -> "Deferred":
        return cls(lambda: fn(*args))

    @classmethod
    def item(cls, value) -> "Deferred":
        async def _value():
            return value
        return cls(_value)

    def on_item(self, callback: Callable[[Any], Any]) -> "Deferred":
        """Run ``callback`` on the resolved item, passing the item through unchanged."""
        async def _invoke():
            value = await self._factory()
            callback(value)
            return value
        return Deferred(_invoke)

    def map(self, fn: Callable[[Any], Any]) -> "Deferred":
        async def _map():
            return fn(await self._factory())
        return Deferred(_map)

    async def resolve(self):
        return await self._factory()

    def __await__(self):
        return self.resolve().__await__()


def combine_all(deferreds, spawn: Optional[Spawner] = None) -> Deferred:
    """Aggregate ``deferreds``; ``spawn`` decides where each constituent runs.

    By default constituents become tasks on the running loop. Passing
    ``TaskPerCallContext.spawn`` puts them on that context instead.
    """
    deferreds = list(deferreds)

    async def _all():
        submit = spawn or asyncio.ensure_future
        futures = [submit(d.resolve()) for d in deferreds]
        try:
            return list(await asyncio.gather(*futures))
        except BaseException:
            for f in futures:
                f.cancel()
            await asyncio.gather(*futures, return_exceptions=True)
            raise

    return Deferred(_all)


def await_indefinitely(deferred: Deferred, deadline: Optional[float] = None):
    """Block the calling thread until ``deferred`` resolves.

    ``deadline`` (seconds) is an optional safety net; ``None`` waits forever.
    """
    async def _main():
        if deadline is None:
            return await deferred.resolve()
        return await asyncio.wait_for(deferred.resolve(), deadline)

    return asyncio.run(_main())
