import pytest

from graphql import specified_rules

from opserve.config import Computed, Fixed, ServerConfig
from opserve.error import InvariantViolation
from opserve.executors import get_default_executor
from opserve.executors.asyncio import AsyncIOExecutor
from opserve.params import OperationParams

from tests.base import make_schema


def test_defaults():
    config = ServerConfig(schema=make_schema())
    assert config.validation_rules.resolve(None, None, None) == specified_rules
    assert config.root_value.resolve(None, None, None) is None
    assert config.context.resolve(None, None, None) is None
    assert config.debug is False
    assert config.query_batching is False
    assert config.get_executor() is get_default_executor()


def test_executor():
    executor = AsyncIOExecutor()
    config = ServerConfig(schema=make_schema(), executor=executor)
    assert config.get_executor() is executor


def test_sources():
    params = OperationParams(query="{hello}")
    assert Fixed(1).resolve(params, None, None) == 1
    computed = Computed(lambda p, doc, op_type: p.query)
    assert computed.resolve(params, None, None) == "{hello}"


def test_create():
    config = ServerConfig.create(schema=make_schema(), debug=True)
    assert config.debug is True


def test_create_unknown_option():
    with pytest.raises(InvariantViolation) as err:
        ServerConfig.create(schema=make_schema(), rootValue={}, foo=1)
    err.match("Unknown server config option\\(s\\): foo, rootValue")


@pytest.mark.parametrize("option", ["root_value", "context", "validation_rules"])
def test_source_must_be_tagged(option):
    with pytest.raises(InvariantViolation) as err:
        ServerConfig(schema=make_schema(), **{option: lambda *_: None})
    err.match("must be Fixed or Computed")


def test_fixed_validation_rules_must_be_sequence():
    with pytest.raises(InvariantViolation):
        ServerConfig(schema=make_schema(), validation_rules=Fixed("rules"))
