"""
opserve.params
~~~~~~~~~~~~~~

Normalized parameters of a single GraphQL operation.

"""

import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping

from opserve.error import RequestError

_ID_KEYS = ("queryid", "documentid", "id")


def _decode_json(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            pass
    return value


def _print_safe_json(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


@dataclass(frozen=True)
class OperationParams:
    """Represents inputs of a single GraphQL operation

    :param query: query text
    :param query_id: identifier of a persisted query
    :param operation: name of the operation to execute
    :param variables: variable values
    :param extensions: protocol extensions sent by the client
    :param read_only: operation arrived via read-only transport method (GET)
    :param original_input: untransformed request parameters
    """

    query: Any = None
    query_id: Any = None
    operation: Any = None
    variables: Any = None
    extensions: Any = None
    read_only: bool = False
    original_input: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls, params: Mapping[str, Any], read_only: bool = False
    ) -> "OperationParams":
        """Creates parameters from the raw request mapping

        Keys are case-insensitive, ``variables`` and ``extensions`` may be
        passed as JSON strings. Values are not validated here, use
        :py:func:`validate_operation_params` for that.
        """
        original = {key.lower(): value for key, value in params.items()}

        variables = original.get("variables")
        if variables == "":
            variables = None

        query_id = None
        for key in _ID_KEYS:
            query_id = original.get(key)
            if query_id:
                break

        return cls(
            query=original.get("query"),
            query_id=query_id,
            operation=original.get("operationname"),
            variables=_decode_json(variables),
            extensions=_decode_json(original.get("extensions")),
            read_only=read_only,
            original_input=original,
        )

    def get_original_input(self, key: str) -> Any:
        return self.original_input.get(key.lower())

    def is_read_only(self) -> bool:
        return self.read_only


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def validate_operation_params(params: OperationParams) -> List[RequestError]:
    """Checks operation parameters and returns a list of violations

    Empty list means that the parameters are valid. The function has no
    side effects, so it is fine to call it before running the pipeline.
    """
    errors = []
    if not params.query and not params.query_id:
        errors.append(
            RequestError(
                "GraphQL Request must include at least one of those two "
                'parameters: "query" or "queryId"'
            )
        )
    if params.query and params.query_id:
        errors.append(
            RequestError(
                'GraphQL Request parameters "query" and "queryId" are '
                "mutually exclusive"
            )
        )

    if params.query is not None and not _is_non_empty_string(params.query):
        errors.append(
            RequestError(
                'GraphQL Request parameter "query" must be string, '
                "but got {}".format(_print_safe_json(params.query))
            )
        )
    if params.query_id is not None and not _is_non_empty_string(
        params.query_id
    ):
        errors.append(
            RequestError(
                'GraphQL Request parameter "queryId" must be string, '
                "but got {}".format(_print_safe_json(params.query_id))
            )
        )
    if params.operation is not None and not _is_non_empty_string(
        params.operation
    ):
        errors.append(
            RequestError(
                'GraphQL Request parameter "operation" must be string, '
                "but got {}".format(_print_safe_json(params.operation))
            )
        )
    if params.variables is not None and not isinstance(
        params.variables, Mapping
    ):
        errors.append(
            RequestError(
                'GraphQL Request parameter "variables" must be object or '
                "JSON string parsed to object, but got {}".format(
                    _print_safe_json(params.get_original_input("variables"))
                )
            )
        )
    return errors

