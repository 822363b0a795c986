import pytest

from graphql.error import GraphQLError

from opserve.error import InvariantViolation
from opserve.finalizer import finalize, resolve_http_status, to_payload
from opserve.result import ExecutionResult


ERROR = GraphQLError("Something went wrong")


@pytest.mark.parametrize(
    "result, status",
    [
        (ExecutionResult({"a": 1}), 200),
        (ExecutionResult({"a": None}, [ERROR]), 200),
        (ExecutionResult(None), 200),
        (ExecutionResult(None, [ERROR]), 400),
    ],
)
def test_single_status(result, status):
    assert resolve_http_status(result) == status


def test_batch_status():
    assert resolve_http_status([]) == 200
    assert (
        resolve_http_status(
            [ExecutionResult(None, [ERROR]), ExecutionResult(None, [ERROR])]
        )
        == 200
    )


def test_batch_invalid_entry():
    with pytest.raises(InvariantViolation) as err:
        resolve_http_status([ExecutionResult({"a": 1}), {"data": None}])
    err.match("entry at position 1")


def test_single_invalid_result():
    with pytest.raises(InvariantViolation):
        resolve_http_status({"data": None})


def test_finalize():
    assert finalize(ExecutionResult(None, [ERROR])) == (
        400,
        {"data": None, "errors": [{"message": "Something went wrong"}]},
    )
    assert finalize([ExecutionResult({"a": 1}), ExecutionResult(None)]) == (
        200,
        [{"data": {"a": 1}}, {"data": None}],
    )


def test_to_payload_applies_attached_formatter():
    result = ExecutionResult(None, [ERROR]).with_error_formatter(
        lambda e: {"msg": e.message.upper()}
    )
    assert to_payload(result) == {
        "data": None,
        "errors": [{"msg": "SOMETHING WENT WRONG"}],
    }
