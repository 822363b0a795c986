import enum

from graphql.language import ast


class OperationType(enum.Enum):
    """Enumerates GraphQL operation types"""

    #: query operation
    QUERY = ast.OperationType.QUERY
    #: mutation operation
    MUTATION = ast.OperationType.MUTATION
    #: subscription operation
    SUBSCRIPTION = ast.OperationType.SUBSCRIPTION
