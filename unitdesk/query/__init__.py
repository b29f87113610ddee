"""Paginated, searchable collection queries with stale-while-revalidate caching."""

from .cache import CacheEntry, QueryCache
from .collection_query import CollectionQuery
from .schemas import CollectionRef, QueryKey, QueryResult, QueryStatus

__all__ = [
    "CacheEntry",
    "QueryCache",
    "CollectionQuery",
    "CollectionRef",
    "QueryKey",
    "QueryResult",
    "QueryStatus",
]
