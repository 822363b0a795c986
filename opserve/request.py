"""
opserve.request
~~~~~~~~~~~~~~~

Normalized HTTP requests and their conversion into operation parameters.

Host adapters (Flask, aiohttp, etc.) build :py:class:`HTTPRequest` from
their own request objects, parameters are never read from global state:

.. code-block:: python

    request = HTTPRequest(
        method=flask.request.method,
        content_type=flask.request.content_type,
        body=flask.request.get_data(),
        query_params=flask.request.args.to_dict(),
    )
    params = parse_http_request(request)

"""

import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union
from urllib.parse import parse_qsl

from opserve.error import RequestError
from opserve.params import OperationParams

SingleOrBatchedParams = Union[OperationParams, List[OperationParams]]


@dataclass(frozen=True)
class HTTPRequest:
    method: str
    content_type: Optional[str] = None
    body: Union[str, bytes, None] = None
    query_params: Mapping[str, Any] = field(default_factory=dict)
    #: decoded form fields, body is decoded when not provided
    form_params: Optional[Mapping[str, Any]] = None

    def text(self) -> str:
        """Returns request body as a string

        :raises RequestError: body is not a valid UTF-8 text
        """
        if self.body is None:
            return ""
        if isinstance(self.body, bytes):
            try:
                return self.body.decode("utf-8")
            except UnicodeDecodeError as e:
                raise RequestError(
                    "Could not decode request body as UTF-8: {}".format(e)
                )
        return self.body


def create_operation_params(
    entry: Any, read_only: bool = False
) -> OperationParams:
    """Same as :py:meth:`OperationParams.create`, but rejects entries which
    are not objects with :py:class:`RequestError`"""
    if not isinstance(entry, Mapping):
        raise RequestError(
            "GraphQL Server expects JSON object or array, "
            "but got {!r}".format(entry)
        )
    return OperationParams.create(entry, read_only=read_only)


def parse_request_params(
    method: str,
    body_params: Union[Mapping[str, Any], List[Any]],
    query_params: Mapping[str, Any],
) -> SingleOrBatchedParams:
    """Returns parameters of the operation, or list of parameters for
    batched requests. Parameters are not validated here.

    :param method: HTTP method, only GET and POST are supported
    :param body_params: decoded request body
    :param query_params: query string fields
    """
    method = method.upper()
    if method == "GET":
        return create_operation_params(query_params, read_only=True)
    elif method == "POST":
        if isinstance(body_params, list):
            return [create_operation_params(entry) for entry in body_params]
        return create_operation_params(body_params)
    raise RequestError('HTTP Method "{}" is not supported'.format(method))


def parse_http_request(request: HTTPRequest) -> SingleOrBatchedParams:
    """Decodes request body according to its content type and returns
    operation parameters, see :py:func:`parse_request_params`"""
    body_params: Any = {}

    if request.method.upper() == "POST":
        content_type = request.content_type
        if content_type is None:
            raise RequestError('Missing "Content-Type" header')

        content_type_lower = content_type.lower()
        if "application/graphql" in content_type_lower:
            body_params = {"query": request.text()}
        elif "application/json" in content_type_lower:
            try:
                body_params = json.loads(request.text())
            except ValueError as e:
                raise RequestError("Could not parse JSON: {}".format(e))
            if not isinstance(body_params, (dict, list)):
                raise RequestError(
                    "GraphQL Server expects JSON object or array, "
                    "but got {}".format(json.dumps(body_params))
                )
        elif "application/x-www-form-urlencoded" in content_type_lower:
            if request.form_params is not None:
                body_params = dict(request.form_params)
            else:
                body_params = dict(parse_qsl(request.text()))
        else:
            raise RequestError(
                "Unexpected content type: {}".format(json.dumps(content_type))
            )

    return parse_request_params(
        request.method, body_params, request.query_params
    )
