from typing import Any, Dict, List, Union, overload

from abc import ABC
from dataclasses import dataclass

from graphql.error import located_error

from opserve.config import ServerConfig
from opserve.error import InvariantViolation, RequestError
from opserve.executors.base import BaseAsyncExecutor, BaseSyncExecutor
from opserve.finalizer import (
    SingleOrBatchedPayload,
    SingleOrBatchedResult,
    finalize,
    to_payload,
)
from opserve.pipeline import (
    apply_error_formatting,
    execute_batch,
    execute_operation,
)
from opserve.request import (
    HTTPRequest,
    SingleOrBatchedParams,
    create_operation_params,
    parse_http_request,
)
from opserve.result import ExecutionResult, GraphQLResponse
from opserve.writers.json import dumps


GraphQLRequest = Dict[str, Any]
BatchedRequest = List[GraphQLRequest]
BatchedResponse = List[GraphQLResponse]

SingleOrBatchedRequest = Union[GraphQLRequest, BatchedRequest]


@dataclass(frozen=True)
class HTTPResponse:
    status: int
    body: str
    content_type: str = "application/json"


class BaseGraphQLEndpoint(ABC):
    """Ties together request parsing, operation pipeline and result
    finalization for the host's transport adapter"""

    config: ServerConfig

    def __init__(self, config: ServerConfig):
        self.config = config

    def to_params(
        self, data: SingleOrBatchedRequest, read_only: bool = False
    ) -> SingleOrBatchedParams:
        if isinstance(data, list):
            return [create_operation_params(item) for item in data]
        return create_operation_params(data, read_only=read_only)

    def make_response(self, result: SingleOrBatchedResult) -> HTTPResponse:
        status, payload = finalize(result)
        return HTTPResponse(status, dumps(payload))

    def error_result(self, error: RequestError) -> ExecutionResult:
        return apply_error_formatting(
            self.config, ExecutionResult(None, [located_error(error)])
        )

    def error_response(self, error: RequestError) -> HTTPResponse:
        return self.make_response(self.error_result(error))


class GraphQLEndpoint(BaseGraphQLEndpoint):
    """Endpoint for synchronous executors

    Example:

    .. code-block:: python

        endpoint = GraphQLEndpoint(ServerConfig(schema=schema))
        result = endpoint.dispatch({"query": "{ hello }"})

    """

    def __init__(self, config: ServerConfig):
        if not isinstance(config.get_executor(), BaseSyncExecutor):
            raise InvariantViolation(
                "{} requires synchronous executor, use AsyncGraphQLEndpoint "
                "instead".format(type(self).__name__)
            )
        super().__init__(config)

    def execute(self, params: SingleOrBatchedParams) -> SingleOrBatchedResult:
        if isinstance(params, list):
            return execute_batch(self.config, params)  # type: ignore
        return execute_operation(self.config, params)  # type: ignore

    @overload
    def dispatch(
        self, data: GraphQLRequest, read_only: bool = False
    ) -> GraphQLResponse: ...

    @overload
    def dispatch(
        self, data: BatchedRequest, read_only: bool = False
    ) -> BatchedResponse: ...

    def dispatch(
        self, data: SingleOrBatchedRequest, read_only: bool = False
    ) -> SingleOrBatchedPayload:
        """
        Dispatch graphql request (or a batch of them) to the pipeline

        :param dict data:
            {"query": str, "variables": dict, "operationName": str}
        :param bool read_only: request was received via GET
        :return: :py:class:`dict` graphql response: data or errors
        """
        try:
            params = self.to_params(data, read_only)
        except RequestError as e:
            return to_payload(self.error_result(e))
        return to_payload(self.execute(params))

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Handles normalized HTTP request and returns JSON response"""
        try:
            params = parse_http_request(request)
        except RequestError as e:
            return self.error_response(e)
        return self.make_response(self.execute(params))


class AsyncGraphQLEndpoint(BaseGraphQLEndpoint):
    """Endpoint for asynchronous executors

    Example:

    .. code-block:: python

        endpoint = AsyncGraphQLEndpoint(
            ServerConfig(schema=schema, executor=AsyncIOExecutor())
        )
        result = await endpoint.dispatch({"query": "{ hello }"})

    """

    def __init__(self, config: ServerConfig):
        if not isinstance(config.get_executor(), BaseAsyncExecutor):
            raise InvariantViolation(
                "{} requires asynchronous executor, use GraphQLEndpoint "
                "instead".format(type(self).__name__)
            )
        super().__init__(config)

    async def execute(
        self, params: SingleOrBatchedParams
    ) -> SingleOrBatchedResult:
        if isinstance(params, list):
            return await execute_batch(self.config, params)  # type: ignore
        return await execute_operation(self.config, params)  # type: ignore

    @overload
    async def dispatch(
        self, data: GraphQLRequest, read_only: bool = False
    ) -> GraphQLResponse: ...

    @overload
    async def dispatch(
        self, data: BatchedRequest, read_only: bool = False
    ) -> BatchedResponse: ...

    async def dispatch(
        self, data: SingleOrBatchedRequest, read_only: bool = False
    ) -> SingleOrBatchedPayload:
        """Dispatch graphql request (or a batch of them) to the pipeline

        Example:

        .. code-block:: python

            result = await endpoint.dispatch({"query": "{ hello }"})

        :param dict data:
            {"query": str, "variables": dict, "operationName": str}
        :param bool read_only: request was received via GET
        :return: :py:class:`dict` graphql response: data or errors
        """
        try:
            params = self.to_params(data, read_only)
        except RequestError as e:
            return to_payload(self.error_result(e))
        return to_payload(await self.execute(params))

    async def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Handles normalized HTTP request and returns JSON response"""
        try:
            params = parse_http_request(request)
        except RequestError as e:
            return self.error_response(e)
        return self.make_response(await self.execute(params))
