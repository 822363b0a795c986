import threading
from collections import OrderedDict
from typing import Iterator, Optional, Tuple

from graphql.language import ast
from prometheus_client import Counter

from opserve.context import ExecutionContext
from opserve.extensions.base_extension import Extension
from opserve.readers.graphql import parse_query

QUERY_CACHE_HITS = Counter("opserve_query_cache_hits", "Query cache hits")
QUERY_CACHE_MISSES = Counter("opserve_query_cache_misses", "Query cache misses")

CacheKey = Tuple[str, str]


class QueryParserCache(Extension):
    """Keeps parsed documents in a LRU cache.

    Persisted queries are cached by their id, so the text returned by the
    loader is not hashed on every request; other queries are cached by
    their text. Documents returned by the persisted query loader are used
    as is. Syntax errors are not cached.

    Exposes two metrics:
    - opserve_query_cache_hits_total
    - opserve_query_cache_misses_total

    :param int maxsize: maximum number of cached documents, ``None`` means
                        unbounded cache
    """

    def __init__(self, maxsize: Optional[int] = 128):
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._documents: "OrderedDict[CacheKey, ast.DocumentNode]" = (
            OrderedDict()
        )
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._documents)

    @staticmethod
    def cache_key(execution_context: ExecutionContext) -> Optional[CacheKey]:
        if execution_context.graphql_document is not None:
            return None
        if execution_context.query_src is None:
            return None
        query_id = execution_context.params.query_id
        if query_id:
            return ("id", query_id)
        return ("query", execution_context.query_src)

    def _get(self, key: CacheKey) -> Optional[ast.DocumentNode]:
        with self._lock:
            document = self._documents.get(key)
            if document is None:
                self.misses += 1
                QUERY_CACHE_MISSES.inc()
            else:
                self._documents.move_to_end(key)
                self.hits += 1
                QUERY_CACHE_HITS.inc()
            return document

    def _put(self, key: CacheKey, document: ast.DocumentNode) -> None:
        with self._lock:
            self._documents[key] = document
            self._documents.move_to_end(key)
            if self.maxsize is not None:
                while len(self._documents) > self.maxsize:
                    self._documents.popitem(last=False)

    def on_parse(self, execution_context: ExecutionContext) -> Iterator[None]:
        key = self.cache_key(execution_context)
        if key is not None:
            document = self._get(key)
            if document is None:
                assert execution_context.query_src is not None
                document = parse_query(execution_context.query_src)
                self._put(key, document)
            execution_context.graphql_document = document
        yield
