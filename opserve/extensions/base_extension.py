from __future__ import annotations

import contextlib
import inspect
from types import TracebackType
from typing import (
    TYPE_CHECKING,
    Callable,
    Iterator,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Type,
    Union,
)

if TYPE_CHECKING:
    from opserve.context import ExecutionContext


Hook = Callable[["Extension", "ExecutionContext"], Iterator[None]]


class Extension:
    """Extension class for hooking into the operation pipeline.

    Each hook is called before and after its respective stage, providing
    opportunities for logging, monitoring, caching and more.

    **Hook execution order:**
    1. on_operation() - Start of operation
    2.   on_parse() - Document resolution
    3.   on_validate() - Document validation
    4.   on_execute() - Hand-off to the executor
    5. on_operation() - End of operation

    Operations rejected early (invalid parameters, unsupported batching or
    method) leave the hooks of the skipped stages uncalled.

    **ExecutionContext fields availability:**
    - on_operation:
        before yield: params, is_batch
        after yield: all fields from execution_context
    - on_parse:
        before yield: query_src
        after yield: graphql_document, operation_type
    - on_validate:
        before yield: all from previous hooks
        after yield: errors
    - on_execute:
        before yield: root_value, context_value
        after yield: same, the execution itself may still be in flight

    **Hook implementation:**
    Each hook should be implemented as a generator function that yields once:
    ```python
    def on_parse(self, execution_context: ExecutionContext) -> Iterator[None]:
        # Pre-parse logic
        yield  # This is where parsing happens
        # Post-parse logic
    ```
    """

    def on_operation(
        self, execution_context: ExecutionContext
    ) -> Iterator[None]:
        """Called before and after the whole pipeline run."""
        yield None

    def on_parse(self, execution_context: ExecutionContext) -> Iterator[None]:
        """Called before and after the document resolution step.

        If execution_context.graphql_document is set before yield, the
        query text is not parsed.
        """
        yield None

    def on_validate(
        self, execution_context: ExecutionContext
    ) -> Iterator[None]:
        """Called before and after the validation step.

        If execution_context.errors is set before yield, validation
        will be skipped.
        """
        yield None

    def on_execute(self, execution_context: ExecutionContext) -> Iterator[None]:
        """Called before and after the operation is handed to the executor."""
        yield None


class ExtensionsManager:
    """ExtensionManager is a per-operation extensions manager.

    It is used to call extensions hooks in the right order.
    """

    def __init__(
        self,
        execution_context: ExecutionContext,
        extensions: Sequence[Union[Type[Extension], Extension]],
    ):
        self.execution_context = execution_context

        init_extensions: List[Extension] = []

        for extension in extensions or []:
            if isinstance(extension, Extension):
                init_extensions.append(extension)
            else:
                init_extensions.append(extension())

        self.extensions = init_extensions

    def operation(self) -> "ExtensionContextManager":
        return ExtensionContextManager(
            Extension.on_operation.__name__,
            self.extensions,
            self.execution_context,
        )

    def parsing(self) -> "ExtensionContextManager":
        return ExtensionContextManager(
            Extension.on_parse.__name__, self.extensions, self.execution_context
        )

    def validation(self) -> "ExtensionContextManager":
        return ExtensionContextManager(
            Extension.on_validate.__name__,
            self.extensions,
            self.execution_context,
        )

    def execution(self) -> "ExtensionContextManager":
        return ExtensionContextManager(
            Extension.on_execute.__name__,
            self.extensions,
            self.execution_context,
        )


class WrappedHook(NamedTuple):
    extension: Extension
    initialized_hook: Iterator[None]


class ExtensionContextManager:
    __slots__ = ("hook_name", "hooks", "default_hook")

    def __init__(
        self,
        hook_name: str,
        extensions: List[Extension],
        execution_context: ExecutionContext,
    ):
        self.hook_name = hook_name
        self.hooks: List[WrappedHook] = []
        self.default_hook: Hook = getattr(Extension, self.hook_name)
        for extension in extensions:
            hook = self.get_hook(extension, execution_context)
            if hook:
                self.hooks.append(hook)

    def get_hook(
        self, extension: Extension, execution_context: ExecutionContext
    ) -> Optional[WrappedHook]:
        hook_fn: Optional[Hook] = getattr(type(extension), self.hook_name)
        hook_fn = hook_fn if hook_fn is not self.default_hook else None

        if hook_fn is None:
            return None

        if inspect.isgeneratorfunction(hook_fn):
            return WrappedHook(extension, hook_fn(extension, execution_context))

        if inspect.iscoroutinefunction(hook_fn) or inspect.isasyncgenfunction(
            hook_fn
        ):
            raise RuntimeError(
                f"Extension hook {extension}.{self.hook_name} is async."
            )

        if callable(hook_fn):
            return self.from_callable(extension, hook_fn, execution_context)

        raise ValueError(
            f"Hook {self.hook_name} on {extension} "
            f"must be callable, received {hook_fn!r}"
        )

    @staticmethod
    def from_callable(
        extension: Extension,
        func: Callable[[Extension, ExecutionContext], None],
        execution_context: ExecutionContext,
    ) -> WrappedHook:
        def iterator() -> Iterator[None]:
            func(extension, execution_context)
            yield

        return WrappedHook(extension, iterator())

    def run_hooks(self, is_exit: bool = False) -> None:
        ctx = (
            contextlib.suppress(StopIteration)
            if is_exit
            else contextlib.nullcontext()
        )
        for hook in self.hooks:
            with ctx:
                next(hook.initialized_hook)

    def __enter__(self) -> None:
        self.run_hooks()

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.run_hooks(is_exit=True)
