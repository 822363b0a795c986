import inspect
from asyncio import (
    Future,
    Task,
    gather,
    get_running_loop,
)
from typing import Any, Awaitable, Callable, Sequence

from opserve.executors.base import BaseAsyncExecutor


class AsyncIOExecutor(BaseAsyncExecutor):
    """AsyncIOExecutor is an executor that uses asyncio event loop to run tasks.

    In-flight values are asyncio tasks and futures, the caller awaits the
    final value instead of blocking on it. Must be used within a running
    event loop.

    By default it allows to run both synchronous and asynchronous tasks.
    To deny synchronous tasks set deny_sync to True.

    :param deny_sync: deny synchronous tasks -
                      raise TypeError if a task is not awaitable
    """

    def __init__(self, deny_sync: bool = False) -> None:
        self.deny_sync = deny_sync

    async def _wrapper(self, result: Any) -> Any:
        if inspect.isawaitable(result):
            return await result
        else:
            return result

    async def _then(self, value: Awaitable, fn: Callable[[Any], Any]) -> Any:
        return fn(await value)

    def create_fulfilled(self, value: Any) -> Future:
        future = get_running_loop().create_future()
        future.set_result(value)
        return future

    def submit(self, fn: Callable, *args: Any, **kwargs: Any) -> Task:
        loop = get_running_loop()

        coro = fn(*args, **kwargs)
        if inspect.iscoroutine(coro):
            return loop.create_task(coro)

        if not inspect.isawaitable(coro) and self.deny_sync:
            raise TypeError(
                "{!r} returned non-awaitable object {!r}".format(fn, coro)
            )
        return loop.create_task(self._wrapper(coro))

    def then(self, value: Awaitable, fn: Callable[[Any], Any]) -> Task:
        return get_running_loop().create_task(self._then(value, fn))

    def all(self, values: Sequence[Awaitable]) -> Future:
        if not values:
            return self.create_fulfilled([])
        return gather(*values)

    def discard(self, values: Sequence[Awaitable]) -> None:
        if values:
            # retrieves results and errors of the abandoned tasks
            gather(*values, return_exceptions=True)
