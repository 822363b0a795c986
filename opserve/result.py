"""
opserve.result
~~~~~~~~~~~~~~

Execution results as they leave the operation pipeline.

Errors are kept as :py:class:`graphql.error.GraphQLError` instances until the
result is serialized. Each result carries the error formatter which was
chosen for it by the pipeline, so the same result can be rendered any
number of times with the same outcome.

"""

import traceback
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, TypedDict

from graphql.error import GraphQLError

__all__ = [
    "ExecutionResult",
    "ErrorFormatter",
    "GraphQLResponse",
    "format_error",
    "format_error_debug",
    "is_client_safe",
]

INTERNAL_ERROR_MESSAGE = "Internal server error"


class GraphQLErrorObject(TypedDict, total=False):
    message: str
    locations: List[Dict[str, int]]
    path: List[Any]
    extensions: Dict[str, Any]


class GraphQLResponse(TypedDict, total=False):
    data: Optional[Dict[str, object]]
    errors: Optional[List[GraphQLErrorObject]]
    extensions: Optional[Dict[str, object]]


ErrorFormatter = Callable[[GraphQLError], Dict[str, Any]]


def is_client_safe(error: GraphQLError) -> bool:
    """Tells whether the error message can be shown to the client as is.

    Errors reported by the parser, validator and executor themselves are
    safe, wrapped exceptions are safe only when they are marked with
    :py:class:`opserve.error.ClientAware`.
    """
    original = error.original_error
    if original is None or isinstance(original, GraphQLError):
        return True
    return bool(getattr(original, "is_client_safe", False))


def format_error(error: GraphQLError) -> Dict[str, Any]:
    """Minimal formatter: message, locations and path only"""
    formatted = dict(error.formatted)
    if not is_client_safe(error):
        formatted["message"] = INTERNAL_ERROR_MESSAGE
    return formatted


def _trace(error: GraphQLError) -> List[str]:
    exc: BaseException = error.original_error or error
    return [line.rstrip() for line in traceback.format_tb(exc.__traceback__)]


def format_error_debug(error: GraphQLError) -> Dict[str, Any]:
    """Verbose formatter, exposes internal messages and stack traces"""
    formatted = format_error(error)
    extensions = dict(formatted.get("extensions") or {})
    if not is_client_safe(error):
        extensions["debugMessage"] = str(error.original_error)
    extensions["trace"] = _trace(error)
    formatted["extensions"] = extensions
    return formatted


@dataclass(frozen=True)
class ExecutionResult:
    data: Optional[Dict[str, Any]]
    errors: List[GraphQLError] = field(default_factory=list)
    extensions: Optional[Dict[str, Any]] = None
    error_formatter: ErrorFormatter = format_error

    def with_error_formatter(
        self, error_formatter: ErrorFormatter
    ) -> "ExecutionResult":
        return replace(self, error_formatter=error_formatter)

    @property
    def formatted_errors(self) -> List[Dict[str, Any]]:
        return [self.error_formatter(error) for error in self.errors]

    def to_dict(self) -> GraphQLResponse:
        response: GraphQLResponse = {"data": self.data}
        if self.errors:
            response["errors"] = self.formatted_errors  # type: ignore
        if self.extensions:
            response["extensions"] = self.extensions
        return response
