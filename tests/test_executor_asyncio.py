import asyncio
from unittest.mock import Mock

import pytest

from opserve.executors.asyncio import AsyncIOExecutor


def func():
    pass


def func2():
    return []


def gen():
    yield


def gen2():
    yield from gen()


async def coroutine():
    return "smiting"


@pytest.mark.asyncio
async def test_awaitable_check__async_only():
    executor = AsyncIOExecutor(deny_sync=True)

    with pytest.raises(TypeError) as func_err:
        executor.submit(func)
    func_err.match("returned non-awaitable object")

    with pytest.raises(TypeError) as func2_err:
        executor.submit(func2)
    func2_err.match("returned non-awaitable object")

    with pytest.raises(TypeError) as gen_err:
        executor.submit(gen)
    gen_err.match("returned non-awaitable object")

    with pytest.raises(TypeError) as gen2_err:
        executor.submit(gen2)
    gen2_err.match("returned non-awaitable object")

    assert (await executor.submit(coroutine)) == "smiting"


@pytest.mark.asyncio
async def test_awaitable_check__sync_async():
    executor = AsyncIOExecutor()

    assert await executor.submit(func) is None
    assert await executor.submit(func2) == []
    assert await executor.submit(gen)
    assert await executor.submit(gen2)
    assert (await executor.submit(coroutine)) == "smiting"


@pytest.mark.asyncio
async def test_awaitable_check__sync_called_once():
    executor = AsyncIOExecutor()
    func_mock = Mock(side_effect=func)
    assert await executor.submit(func_mock) is None
    func_mock.assert_called_once()


@pytest.mark.asyncio
async def test_create_fulfilled_and_then():
    executor = AsyncIOExecutor()
    value = executor.then(executor.create_fulfilled(2), lambda x: x * 21)
    assert await value == 42


@pytest.mark.asyncio
async def test_all_preserves_order():
    executor = AsyncIOExecutor()

    async def delayed(value, delay):
        await asyncio.sleep(delay)
        return value

    values = [
        executor.submit(delayed, "a", 0.02),
        executor.create_fulfilled("b"),
        executor.submit(delayed, "c", 0),
    ]
    assert await executor.all(values) == ["a", "b", "c"]
    assert await executor.all([]) == []


@pytest.mark.asyncio
async def test_then_propagates_errors():
    executor = AsyncIOExecutor()

    async def fail():
        raise ValueError("failed")

    continuation = Mock()
    with pytest.raises(ValueError, match="failed"):
        await executor.then(executor.submit(fail), continuation)
    continuation.assert_not_called()
