"""Searchable add-on index over a pluggable document store."""

from .elasticsearch import ElasticsearchStore
from .memory import MemoryDocumentStore
from .query import build_search_query
from .service import AddOnIndex, IndexState
from .store import ADD_ON_MAPPING, DocumentStore, IndexSetupError, IndexUnavailable

__all__ = [
    "ADD_ON_MAPPING",
    "AddOnIndex",
    "DocumentStore",
    "ElasticsearchStore",
    "IndexSetupError",
    "IndexState",
    "IndexUnavailable",
    "MemoryDocumentStore",
    "build_search_query",
]
