from .base_extension import Extension
from .query_parse_cache import QueryParserCache

__all__ = [
    "Extension",
    "QueryParserCache",
]
