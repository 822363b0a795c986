"""
opserve.finalizer
~~~~~~~~~~~~~~~~~

Turns resolved execution results into a transport status and payload.

"""

from typing import List, Tuple, Union

from opserve.error import InvariantViolation
from opserve.result import ExecutionResult, GraphQLResponse

SingleOrBatchedResult = Union[ExecutionResult, List[ExecutionResult]]
SingleOrBatchedPayload = Union[GraphQLResponse, List[GraphQLResponse]]


def resolve_http_status(result: SingleOrBatchedResult) -> int:
    """Single result without data but with errors is a client error,
    batched results are always successful"""
    if isinstance(result, (list, tuple)):
        for index, entry in enumerate(result):
            if not isinstance(entry, ExecutionResult):
                raise InvariantViolation(
                    "Expecting every entry of batched query result to be "
                    "instance of {} but entry at position {} is {!r}".format(
                        ExecutionResult.__name__, index, entry
                    )
                )
        return 200

    if not isinstance(result, ExecutionResult):
        raise InvariantViolation(
            "Expecting query result to be instance of {} but got {!r}".format(
                ExecutionResult.__name__, result
            )
        )
    if result.data is None and result.errors:
        return 400
    return 200


def to_payload(result: SingleOrBatchedResult) -> SingleOrBatchedPayload:
    if isinstance(result, (list, tuple)):
        return [entry.to_dict() for entry in result]
    return result.to_dict()


def finalize(
    result: SingleOrBatchedResult,
) -> Tuple[int, SingleOrBatchedPayload]:
    """Returns transport status and payload for the resolved result"""
    status = resolve_http_status(result)
    return status, to_payload(result)
