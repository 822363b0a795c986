"""
opserve.pipeline
~~~~~~~~~~~~~~~~

Drives operations through parameters validation, document resolution,
document validation and execution.

Every run produces an in-flight :py:class:`opserve.result.ExecutionResult`
of the configured executor. Client errors are turned into results with
errors, host integration defects are propagated to the caller.

"""

import inspect
import logging
from functools import partial
from typing import (
    Any,
    Awaitable,
    Callable,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Union,
)

from graphql import ExecutionResult as _EngineResult
from graphql.error import GraphQLError, located_error
from graphql.execution import execute
from graphql.language import ast
from graphql.type import GraphQLSchema
from graphql.validation import validate

from opserve.config import ServerConfig
from opserve.context import ExecutionContext
from opserve.error import InvariantViolation, RequestError
from opserve.executors.base import BaseExecutor, BaseSyncExecutor
from opserve.extensions.base_extension import ExtensionsManager
from opserve.operation import OperationType
from opserve.params import OperationParams, validate_operation_params
from opserve.readers.graphql import get_operation_type, parse_query
from opserve.result import ExecutionResult, format_error, format_error_debug


log = logging.getLogger(__name__)


class Rejected(NamedTuple):
    """Early exit of the pipeline, operation is not executed"""

    errors: List[GraphQLError]


def _reject(error: RequestError) -> Rejected:
    return Rejected([located_error(error)])


def _load_persisted_query(
    config: ServerConfig, params: OperationParams
) -> Union[str, ast.DocumentNode, Rejected]:
    loader = config.persisted_query_loader
    if loader is None:
        return _reject(
            RequestError("Persisted queries are not supported by this server")
        )

    source = loader(params.query_id, params)
    if not isinstance(source, (str, ast.DocumentNode)):
        raise InvariantViolation(
            "Persisted query loader must return query string or instance "
            "of {} but got: {!r}".format(ast.DocumentNode.__name__, source)
        )
    return source


def _resolve_validation_rules(
    config: ServerConfig, execution_context: ExecutionContext
) -> Sequence[Any]:
    assert execution_context.graphql_document is not None
    rules = config.validation_rules.resolve(
        execution_context.params,
        execution_context.graphql_document,
        execution_context.operation_type,
    )
    if not isinstance(rules, (list, tuple)):
        raise InvariantViolation(
            "Expecting validation rules to be a sequence or a function "
            "returning a sequence, but got: {!r}".format(rules)
        )
    return rules


def _resolve_document(
    config: ServerConfig,
    execution_context: ExecutionContext,
    extensions_manager: ExtensionsManager,
) -> Optional[Rejected]:
    params = execution_context.params
    if params.query_id:
        source = _load_persisted_query(config, params)
        if isinstance(source, Rejected):
            return source
    else:
        source = params.query

    if isinstance(source, ast.DocumentNode):
        execution_context.graphql_document = source
    else:
        execution_context.query_src = source

    with extensions_manager.parsing():
        if execution_context.graphql_document is None:
            assert execution_context.query_src is not None
            execution_context.graphql_document = parse_query(
                execution_context.query_src
            )
        execution_context.operation_type = get_operation_type(
            execution_context.graphql_document, params.operation
        )
    return None


def _prepare(
    config: ServerConfig,
    execution_context: ExecutionContext,
    extensions_manager: ExtensionsManager,
) -> Optional[Rejected]:
    params = execution_context.params

    if execution_context.is_batch and not config.query_batching:
        return _reject(
            RequestError("Batched queries are not supported by this server")
        )

    violations = validate_operation_params(params)
    if violations:
        return Rejected([located_error(e) for e in violations])

    rejected = _resolve_document(config, execution_context, extensions_manager)
    if rejected is not None:
        return rejected

    if (
        params.is_read_only()
        and execution_context.operation_type is not OperationType.QUERY
    ):
        return _reject(RequestError("GET supports only query operation"))

    with extensions_manager.validation():
        if execution_context.errors is None:
            assert execution_context.graphql_document is not None
            execution_context.errors = validate(
                config.schema,
                execution_context.graphql_document,
                _resolve_validation_rules(config, execution_context),
            )
    if execution_context.errors:
        return Rejected(list(execution_context.errors))

    assert execution_context.graphql_document is not None
    source_args = (
        params,
        execution_context.graphql_document,
        execution_context.operation_type,
    )
    execution_context.root_value = config.root_value.resolve(*source_args)
    execution_context.context_value = config.context.resolve(*source_args)
    return None


def _from_engine_result(result: _EngineResult) -> ExecutionResult:
    return ExecutionResult(
        data=result.data,
        errors=list(result.errors or []),
        extensions=result.extensions,
    )


async def _await_engine_result(
    result: Awaitable[_EngineResult],
) -> ExecutionResult:
    return _from_engine_result(await result)


def _execute(
    schema: GraphQLSchema,
    document: ast.DocumentNode,
    root_value: Any,
    context_value: Any,
    variables: Optional[dict],
    operation_name: Optional[str],
    field_resolver: Optional[Callable[..., Any]],
) -> Union[ExecutionResult, Awaitable[ExecutionResult]]:
    try:
        result = execute(
            schema,
            document,
            root_value=root_value,
            context_value=context_value,
            variable_values=variables,
            operation_name=operation_name,
            field_resolver=field_resolver,
        )
    except GraphQLError as e:
        return ExecutionResult(None, [e])
    if inspect.isawaitable(result):
        return _await_engine_result(result)
    return _from_engine_result(result)  # type: ignore[arg-type]


def apply_error_formatting(
    config: ServerConfig, result: ExecutionResult
) -> ExecutionResult:
    if config.debug:
        error_formatter = format_error_debug
    else:
        error_formatter = config.error_formatter or format_error
    return result.with_error_formatter(error_formatter)


def promise_to_execute_operation(
    executor: BaseExecutor,
    config: ServerConfig,
    params: OperationParams,
    is_batch: bool = False,
) -> Any:
    """Runs the pipeline for a single operation

    :return: in-flight :py:class:`ExecutionResult` of the ``executor``
    """
    execution_context = ExecutionContext(params=params, is_batch=is_batch)
    extensions_manager = ExtensionsManager(
        execution_context=execution_context,
        extensions=config.extensions,
    )

    with extensions_manager.operation():
        try:
            rejected = _prepare(config, execution_context, extensions_manager)
        except RequestError as e:
            rejected = _reject(e)
        except GraphQLError as e:
            rejected = Rejected([e])

        if rejected is not None:
            log.debug(
                "Operation rejected: %s",
                "; ".join(e.message for e in rejected.errors),
            )
            result = executor.create_fulfilled(
                ExecutionResult(None, rejected.errors)
            )
        else:
            variables = params.variables
            with extensions_manager.execution():
                result = executor.submit(
                    _execute,
                    config.schema,
                    execution_context.graphql_document,
                    execution_context.root_value,
                    execution_context.context_value,
                    dict(variables) if variables is not None else None,
                    params.operation,
                    config.field_resolver,
                )

    return executor.then(result, partial(apply_error_formatting, config))


def _wait_if_sync(executor: BaseExecutor, value: Any) -> Any:
    if isinstance(executor, BaseSyncExecutor):
        return executor.wait(value)
    return value


def execute_operation(
    config: ServerConfig, params: OperationParams
) -> Union[ExecutionResult, Awaitable[ExecutionResult]]:
    """Executes single operation

    Returns :py:class:`ExecutionResult` when executor is synchronous, or
    an awaitable of it otherwise.
    """
    executor = config.get_executor()
    result = promise_to_execute_operation(executor, config, params)
    return _wait_if_sync(executor, result)


def execute_batch(
    config: ServerConfig, operations: Sequence[OperationParams]
) -> Union[List[ExecutionResult], Awaitable[List[ExecutionResult]]]:
    """Executes batched operations sharing one executor

    Deferred work of all operations is resolved together and results are
    returned in the order of ``operations``. When an operation fails with
    an unexpected error, the work already started for the preceding
    operations is discarded before the error is raised.
    """
    executor = config.get_executor()
    log.debug("Executing batch of %d operations", len(operations))
    results: List[Any] = []
    try:
        for op in operations:
            results.append(
                promise_to_execute_operation(
                    executor, config, op, is_batch=True
                )
            )
    except Exception:
        executor.discard(results)
        raise
    return _wait_if_sync(executor, executor.all(results))
