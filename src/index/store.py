"""Document-store contract used by the add-on index."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class IndexUnavailable(RuntimeError):
    """The backing store could not serve a read or write."""


class IndexSetupError(IndexUnavailable):
    """Creating the index or applying its mapping failed."""


# Field mapping for add-on documents. Keyword fields match exactly; text
# fields are analyzed for full-text and prefix matching.
ADD_ON_MAPPING: Dict[str, Any] = {
    "properties": {
        "uid": {"type": "keyword"},
        "type": {"type": "keyword"},
        "name": {"type": "text", "fields": {"raw": {"type": "keyword"}}},
        "description": {"type": "text"},
        "hostedUrl": {"type": "keyword", "index": False},
        "status": {"type": "keyword"},
        "tags": {"type": "keyword"},
        "maintainers": {"type": "object", "enabled": False},
        "downloadCountInLast30Days": {"type": "integer"},
        "moduleId": {"type": "keyword"},
        "modulePackage": {"type": "keyword"},
        "latestVersion": {"type": "keyword"},
        "versions": {"type": "object", "enabled": False},
    }
}


# A search hit: ``_id``, ``_score`` and ``_source``.
Hit = Dict[str, Any]


class DocumentStore(Protocol):
    """Minimal store operations the index needs.

    ``count`` returns None when the index does not exist. Every other
    failure raises ``IndexUnavailable``.
    """

    def count(self, index: str) -> Optional[int]:
        ...

    def create_index(self, index: str) -> None:
        ...

    def put_mapping(self, index: str, mapping: Dict[str, Any]) -> None:
        ...

    def put(self, index: str, doc_id: str, document: Dict[str, Any]) -> None:
        ...

    def get(self, index: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    def search(self, index: str, body: Dict[str, Any]) -> List[Hit]:
        ...
