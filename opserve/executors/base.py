import abc
from typing import (
    Any,
    Callable,
    Sequence,
    Union,
)


class BaseExecutor(abc.ABC):
    """Unifies synchronous and deferred execution backends.

    Pipeline code only uses these operations, so it never depends on the
    kind of the executor it runs with. In-flight values are opaque, they
    are created and consumed by the same executor instance.
    """

    @abc.abstractmethod
    def create_fulfilled(self, value: Any) -> Any:
        """Wraps a value into an already resolved in-flight value"""
        raise NotImplementedError

    @abc.abstractmethod
    def submit(self, fn: Callable, *args: Any, **kwargs: Any) -> Any:
        """Schedules a call and returns in-flight value of its result"""
        raise NotImplementedError

    @abc.abstractmethod
    def all(self, values: Sequence[Any]) -> Any:
        """Combines in-flight values into one, preserving their order"""
        raise NotImplementedError

    @abc.abstractmethod
    def then(self, value: Any, fn: Callable[[Any], Any]) -> Any:
        """Chains a continuation onto an in-flight value"""
        raise NotImplementedError

    @abc.abstractmethod
    def discard(self, values: Sequence[Any]) -> None:
        """Settles in-flight values nobody is going to wait for"""
        raise NotImplementedError


class BaseSyncExecutor(BaseExecutor):
    @abc.abstractmethod
    def wait(self, value: Any) -> Any:
        """Blocks until the in-flight value is resolved"""
        raise NotImplementedError


class BaseAsyncExecutor(BaseExecutor):
    pass


SyncAsyncExecutor = Union[BaseSyncExecutor, BaseAsyncExecutor]
