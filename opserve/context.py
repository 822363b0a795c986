from dataclasses import dataclass
from typing import Any, List, Optional

from graphql.error import GraphQLError
from graphql.language import ast

from opserve.operation import OperationType
from opserve.params import OperationParams


@dataclass
class ExecutionContext:
    """State of a single pipeline run, shared with extension hooks"""

    params: OperationParams
    is_batch: bool = False
    query_src: Optional[str] = None
    """If document is set before parsing, parsing is skipped"""
    graphql_document: Optional[ast.DocumentNode] = None
    operation_type: Optional[OperationType] = None
    """If errors is list, validation was performed"""
    errors: Optional[List[GraphQLError]] = None
    root_value: Any = None
    context_value: Any = None

    @property
    def operation_name(self) -> Optional[str]:
        return self.params.operation
