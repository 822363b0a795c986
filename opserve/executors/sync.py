import inspect
import threading
from collections import deque
from typing import (
    Any,
    Callable,
    Deque,
    Generic,
    List,
    Optional,
    Sequence,
    TypeVar,
)

from opserve.error import InvariantViolation
from opserve.executors.base import BaseSyncExecutor


T = TypeVar("T")


class SyncPromise(Generic[T]):
    """In-flight value of the :py:class:`SyncExecutor`

    Promise is settled only by the tasks of its executor's queue, so nothing
    happens until the queue is drained by :py:meth:`SyncExecutor.wait`.
    """

    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"

    def __init__(self, executor: "SyncExecutor") -> None:
        self._executor = executor
        self._state = self.PENDING
        self._value: Any = None
        self._waiting: List[Callable[[], None]] = []

    @property
    def state(self) -> str:
        return self._state

    def exception(self) -> Optional[BaseException]:
        return self._value if self._state == self.REJECTED else None

    def result(self) -> T:
        if self._state == self.REJECTED:
            raise self._value
        if self._state == self.PENDING:
            raise InvariantViolation("Promise is not resolved yet")
        return self._value

    def _settle(self, state: str, value: Any) -> None:
        assert self._state == self.PENDING, self._state
        self._state = state
        self._value = value
        waiting, self._waiting = self._waiting, []
        for task in waiting:
            self._executor.enqueue(task)

    def fulfill(self, value: T) -> None:
        self._settle(self.FULFILLED, value)

    def reject(self, error: BaseException) -> None:
        self._settle(self.REJECTED, error)

    def run(self, fn: Callable, *args: Any, **kwargs: Any) -> None:
        try:
            value = fn(*args, **kwargs)
        except Exception as e:
            self.reject(e)
        else:
            self.fulfill(value)

    def on_settled(self, task: Callable[[], None]) -> None:
        if self._state == self.PENDING:
            self._waiting.append(task)
        else:
            self._executor.enqueue(task)


class _WorkQueue(threading.local):
    def __init__(self) -> None:
        self.tasks: Deque[Callable[[], None]] = deque()


class SyncExecutor(BaseSyncExecutor):
    """Runs everything on the calling thread.

    Submitted calls and continuations are put into a work queue, shared by
    all operations using this executor on the current thread. The queue is
    drained by :py:meth:`wait`, so the work of a batch of operations is done
    within one loop.

    Every thread has its own queue, so one instance can serve concurrent
    requests of a threaded server.
    """

    def __init__(self) -> None:
        self._local = _WorkQueue()

    @property
    def _queue(self) -> Deque[Callable[[], None]]:
        return self._local.tasks

    def enqueue(self, task: Callable[[], None]) -> None:
        self._queue.append(task)

    def create_fulfilled(self, value: T) -> SyncPromise[T]:
        promise: SyncPromise[T] = SyncPromise(self)
        promise.fulfill(value)
        return promise

    def _call(self, fn: Callable, *args: Any, **kwargs: Any) -> Any:
        result = fn(*args, **kwargs)
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise TypeError(
                "{!r} returned awaitable object {!r}, use AsyncIOExecutor "
                "to run asynchronous code".format(fn, result)
            )
        return result

    def submit(self, fn: Callable, *args: Any, **kwargs: Any) -> SyncPromise:
        promise: SyncPromise = SyncPromise(self)
        self.enqueue(lambda: promise.run(self._call, fn, *args, **kwargs))
        return promise

    def then(
        self, value: SyncPromise, fn: Callable[[Any], T]
    ) -> SyncPromise[T]:
        promise: SyncPromise[T] = SyncPromise(self)

        def callback() -> None:
            if value.state == SyncPromise.REJECTED:
                promise.reject(value.exception())  # type: ignore[arg-type]
            else:
                promise.run(fn, value.result())

        value.on_settled(callback)
        return promise

    def all(self, values: Sequence[SyncPromise]) -> SyncPromise[List]:
        promise: SyncPromise[List] = SyncPromise(self)
        if not values:
            promise.fulfill([])
            return promise

        results: List[Any] = [None] * len(values)
        pending = [len(values)]

        def collect(index: int, item: SyncPromise) -> Callable[[], None]:
            def callback() -> None:
                if promise.state != SyncPromise.PENDING:
                    return
                if item.state == SyncPromise.REJECTED:
                    promise.reject(item.exception())  # type: ignore[arg-type]
                    return
                results[index] = item.result()
                pending[0] -= 1
                if not pending[0]:
                    promise.fulfill(results)

            return callback

        for i, item in enumerate(values):
            item.on_settled(collect(i, item))
        return promise

    def discard(self, values: Sequence[SyncPromise]) -> None:
        self.process()

    def wait(self, value: SyncPromise[T]) -> T:
        self.process()
        if value.state == SyncPromise.PENDING:
            raise InvariantViolation(
                "Could not resolve promise, work queue is empty"
            )
        return value.result()

    def process(self) -> int:
        """Drains the work queue, returns number of processed tasks"""
        queue = self._queue
        processed = 0
        while queue:
            queue.popleft()()
            processed += 1
        return processed
