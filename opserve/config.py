"""
opserve.config
~~~~~~~~~~~~~~

Server configuration, constructed once by the host application and only
read while requests are handled.

Values which may differ per operation (root value, context value and
validation rules) are described with :py:class:`Fixed` or
:py:class:`Computed`:

.. code-block:: python

    config = ServerConfig(
        schema=schema,
        root_value=Fixed({"hello": "world"}),
        context=Computed(lambda params, doc, op_type: {"user": get_user()}),
    )

"""

from dataclasses import dataclass, field, fields
from typing import (
    Any,
    Callable,
    Generic,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from graphql.language import ast
from graphql.type import GraphQLSchema
from graphql.validation import specified_rules

from opserve.error import InvariantViolation
from opserve.executors import get_default_executor
from opserve.executors.base import SyncAsyncExecutor
from opserve.extensions.base_extension import Extension
from opserve.operation import OperationType
from opserve.params import OperationParams
from opserve.result import ErrorFormatter


T = TypeVar("T")

PersistedQueryLoader = Callable[
    [str, OperationParams], Union[str, ast.DocumentNode]
]


class Fixed(Generic[T]):
    """Same value for every operation"""

    __slots__ = ("value",)

    def __init__(self, value: T) -> None:
        self.value = value

    def resolve(
        self,
        params: OperationParams,
        document: ast.DocumentNode,
        operation_type: Optional[OperationType],
    ) -> T:
        return self.value

    def __repr__(self) -> str:
        return "Fixed({!r})".format(self.value)


class Computed(Generic[T]):
    """Value computed for each operation by calling
    ``func(params, document, operation_type)``"""

    __slots__ = ("func",)

    def __init__(
        self,
        func: Callable[
            [OperationParams, ast.DocumentNode, Optional[OperationType]], T
        ],
    ) -> None:
        self.func = func

    def resolve(
        self,
        params: OperationParams,
        document: ast.DocumentNode,
        operation_type: Optional[OperationType],
    ) -> T:
        return self.func(params, document, operation_type)

    def __repr__(self) -> str:
        return "Computed({!r})".format(self.func)


Source = Union[Fixed[T], Computed[T]]

_SOURCE_FIELDS = ("validation_rules", "root_value", "context")


@dataclass
class ServerConfig:
    """Configuration of the operation pipeline

    :param schema: GraphQL schema to execute operations against
    :param executor: execution backend, process default when not set
    :param validation_rules: rules to validate documents with
    :param persisted_query_loader: ``loader(query_id, params)`` returning
                                   query text or parsed document
    :param root_value: root value for the executor
    :param context: context value for the executor
    :param field_resolver: default field resolver
    :param debug: include internal error details in responses
    :param error_formatter: custom error formatter
    :param query_batching: allow batched requests
    :param extensions: pipeline lifecycle extensions
    """

    schema: GraphQLSchema
    executor: Optional[SyncAsyncExecutor] = None
    validation_rules: Source[Sequence[Any]] = field(
        default_factory=lambda: Fixed(specified_rules)
    )
    persisted_query_loader: Optional[PersistedQueryLoader] = None
    root_value: Source[Any] = field(default_factory=lambda: Fixed(None))
    context: Source[Any] = field(default_factory=lambda: Fixed(None))
    field_resolver: Optional[Callable[..., Any]] = None
    debug: bool = False
    error_formatter: Optional[ErrorFormatter] = None
    query_batching: bool = False
    extensions: Sequence[Extension] = ()

    def __post_init__(self) -> None:
        for name in _SOURCE_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, (Fixed, Computed)):
                raise InvariantViolation(
                    "Config option {!r} must be Fixed or Computed, "
                    "but got: {!r}".format(name, value)
                )
        if isinstance(self.validation_rules, Fixed) and not isinstance(
            self.validation_rules.value, (list, tuple)
        ):
            raise InvariantViolation(
                "Expecting validation rules to be a sequence, "
                "but got: {!r}".format(self.validation_rules.value)
            )

    @classmethod
    def create(cls, **options: Any) -> "ServerConfig":
        """Creates config from keyword options, rejecting unknown ones"""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise InvariantViolation(
                "Unknown server config option(s): {}".format(
                    ", ".join(unknown)
                )
            )
        return cls(**options)

    def get_executor(self) -> SyncAsyncExecutor:
        return self.executor or get_default_executor()
