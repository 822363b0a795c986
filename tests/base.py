from graphql import build_schema

from opserve.config import Fixed, ServerConfig


SDL = """
type Query {
  hello: String
  answer(value: Int = 42): Int
  fail: String
}

type Mutation {
  setHello(value: String): String
}
"""


class ResolverError(Exception):
    pass


def fail(info):
    raise ResolverError("boom")


def make_schema():
    return build_schema(SDL)


def make_root(**overrides):
    root = {
        "hello": "world",
        "answer": lambda info, value: value,
        "fail": fail,
        "setHello": lambda info, value: value,
    }
    root.update(overrides)
    return root


def make_config(**options):
    options.setdefault("schema", make_schema())
    options.setdefault("root_value", Fixed(make_root()))
    return ServerConfig(**options)


def messages(result):
    return [e.message for e in result.errors]
