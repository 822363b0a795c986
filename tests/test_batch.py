import asyncio
from unittest.mock import Mock

import pytest

from opserve.config import Fixed
from opserve.error import InvariantViolation
from opserve.executors.asyncio import AsyncIOExecutor
from opserve.executors.sync import SyncExecutor
from opserve.params import OperationParams
from opserve.pipeline import (
    execute_batch,
    execute_operation,
    promise_to_execute_operation,
)

from tests.base import make_config, make_root, messages


BATCH = [
    OperationParams(query="{hello}"),
    OperationParams(query="{unknown}"),
    OperationParams(query="{answer(value: 1)}"),
]


def _check_batch(results):
    assert len(results) == 3
    assert results[0].data == {"hello": "world"}
    assert results[0].errors == []

    assert results[1].data is None
    assert len(results[1].errors) == 1
    assert "Cannot query field 'unknown'" in results[1].errors[0].message

    assert results[2].data == {"answer": 1}
    assert results[2].errors == []


def test_batch_order_and_isolation():
    results = execute_batch(make_config(query_batching=True), BATCH)
    _check_batch(results)


def test_batch_invalid_params_isolated():
    results = execute_batch(
        make_config(query_batching=True),
        [
            OperationParams(query="{hello}"),
            OperationParams(),
            OperationParams(query="{hello"),
            OperationParams(query="{answer}"),
        ],
    )
    assert [r.data for r in results] == [
        {"hello": "world"},
        None,
        None,
        {"answer": 42},
    ]
    assert messages(results[1]) == [
        "GraphQL Request must include at least one of those two "
        'parameters: "query" or "queryId"'
    ]
    assert messages(results[2])[0].startswith("Syntax Error")


def test_batch_empty():
    assert execute_batch(make_config(query_batching=True), []) == []


def test_batching_disabled():
    results = execute_batch(make_config(), BATCH)
    assert len(results) == 3
    for result in results:
        assert result.data is None
        assert messages(result) == [
            "Batched queries are not supported by this server"
        ]


def test_single_operation_ignores_batching_flag():
    result = execute_operation(make_config(), OperationParams(query="{hello}"))
    assert result.data == {"hello": "world"}


class CountingExecutor(SyncExecutor):
    def __init__(self):
        super().__init__()
        self.wait_calls = 0

    def wait(self, value):
        self.wait_calls += 1
        return super().wait(value)


def test_batch_waits_once():
    executor = CountingExecutor()
    hello = Mock(return_value="world")
    config = make_config(
        executor=executor,
        query_batching=True,
        root_value=Fixed(make_root(hello=hello)),
    )
    results = execute_batch(
        config,
        [OperationParams(query="{hello}"), OperationParams(query="{hello}")],
    )
    assert [r.data for r in results] == [{"hello": "world"}] * 2
    assert executor.wait_calls == 1
    assert hello.call_count == 2


def test_batch_shares_work_queue():
    executor = SyncExecutor()
    hello = Mock(return_value="world")
    config = make_config(
        executor=executor,
        query_batching=True,
        root_value=Fixed(make_root(hello=hello)),
    )
    promises = [
        promise_to_execute_operation(
            executor, config, OperationParams(query="{hello}"), is_batch=True
        )
        for _ in range(3)
    ]
    hello.assert_not_called()

    results = executor.wait(executor.all(promises))
    assert len(results) == 3
    assert hello.call_count == 3


@pytest.fixture(name="async_config")
def async_config_fixture():
    async def hello(info):
        return "world"

    return make_config(
        executor=AsyncIOExecutor(),
        query_batching=True,
        root_value=Fixed(make_root(hello=hello)),
    )


@pytest.mark.asyncio
async def test_async_operation(async_config):
    result = await execute_operation(
        async_config, OperationParams(query="{hello}")
    )
    assert result.data == {"hello": "world"}


@pytest.mark.asyncio
async def test_async_operation_rejected(async_config):
    result = await execute_operation(
        async_config,
        OperationParams(query="mutation { setHello }", read_only=True),
    )
    assert result.data is None
    assert messages(result) == ["GET supports only query operation"]


@pytest.mark.asyncio
async def test_async_batch(async_config):
    results = await execute_batch(async_config, BATCH)
    _check_batch(results)


@pytest.mark.asyncio
async def test_async_batch_empty(async_config):
    assert await execute_batch(async_config, []) == []


def _invalid_loader(query_id, params):
    return 42


def test_batch_unexpected_error_settles_started_work():
    executor = SyncExecutor()
    hello = Mock(return_value="world")
    config = make_config(
        executor=executor,
        query_batching=True,
        persisted_query_loader=_invalid_loader,
        root_value=Fixed(make_root(hello=hello)),
    )
    with pytest.raises(InvariantViolation):
        execute_batch(
            config,
            [OperationParams(query="{hello}"), OperationParams(query_id="q")],
        )
    hello.assert_called_once()
    assert executor.process() == 0


@pytest.mark.asyncio
async def test_async_batch_unexpected_error_settles_started_work():
    hello = Mock(return_value="world")

    async def async_hello(info):
        return hello()

    config = make_config(
        executor=AsyncIOExecutor(),
        query_batching=True,
        persisted_query_loader=_invalid_loader,
        root_value=Fixed(make_root(hello=async_hello)),
    )
    with pytest.raises(InvariantViolation):
        execute_batch(
            config,
            [OperationParams(query="{hello}"), OperationParams(query_id="q")],
        )

    current = asyncio.current_task()
    for _ in range(50):
        await asyncio.sleep(0)
    hello.assert_called_once()
    assert [task for task in asyncio.all_tasks() if task is not current] == []
