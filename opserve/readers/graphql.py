"""
opserve.readers.graphql
~~~~~~~~~~~~~~~~~~~~~~~

Support for documents encoded using GraphQL syntax.

"""

from typing import Optional

from graphql.language import ast
from graphql.language.parser import parse

from ..operation import OperationType


def parse_query(src: str) -> ast.DocumentNode:
    """Parses a query into GraphQL ast

    :param str src: GraphQL query string
    :return: :py:class:`ast.DocumentNode`
    :raises graphql.error.GraphQLError: on syntax errors
    """
    return parse(src)


def get_operation_type(
    document: ast.DocumentNode, operation_name: Optional[str] = None
) -> Optional[OperationType]:
    """Returns type of the requested operation

    Without operation name the first operation in the document is used,
    ``None`` is returned when the document has no matching operation.
    Ambiguity is reported later by the executor.

    :param document: parsed GraphQL document
    :param operation_name: name of the operation from the request
    """
    for definition in document.definitions:
        if not isinstance(definition, ast.OperationDefinitionNode):
            continue
        name = definition.name.value if definition.name is not None else None
        if operation_name is None or name == operation_name:
            return OperationType(definition.operation)
    return None
