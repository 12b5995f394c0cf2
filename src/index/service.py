"""The add-on index: set-up state machine plus typed reads and writes."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from constants import Constants
from domain import AddOnInfoAndVersions, AddOnInfoSummary, AddOnType

from .query import build_search_query, match_all_query, match_query
from .store import ADD_ON_MAPPING, DocumentStore, IndexSetupError, IndexUnavailable

logger = logging.getLogger(__name__)


class IndexState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class AddOnIndex:
    """Searchable store of ``AddOnInfoAndVersions`` keyed by uid.

    ``set_up`` must run before any read or write. Store errors surface as
    ``IndexUnavailable``; they are never swallowed here.
    """

    def __init__(self, store: DocumentStore, index_name: str = Constants.ES_INDEX,
                 search_size: int = Constants.SEARCH_SIZE):
        self.store = store
        self.index_name = index_name
        self.search_size = search_size
        self.state = IndexState.UNINITIALIZED

    def set_up(self) -> None:
        """Create the index if absent and (re)apply the mapping.

        Safe to call on every start; existing documents are kept.

        Raises:
            IndexSetupError: if the store rejects any step.
        """
        try:
            count = self.store.count(self.index_name)
            if count is not None:
                logger.info("Existing index %s with %s documents", self.index_name, count)
            else:
                logger.info("Creating new index: %s", self.index_name)
                self.store.create_index(self.index_name)
            logger.info("Updating mappings on index %s", self.index_name)
            self.store.put_mapping(self.index_name, ADD_ON_MAPPING)
        except IndexSetupError:
            raise
        except IndexUnavailable as exc:
            raise IndexSetupError(str(exc)) from exc
        self.state = IndexState.READY

    def _require_ready(self) -> None:
        if self.state is not IndexState.READY:
            raise IndexUnavailable(f"index {self.index_name} has not been set up")

    def index(self, info: AddOnInfoAndVersions) -> None:
        """Upsert the whole document for ``info.uid``."""
        self._require_ready()
        self.store.put(self.index_name, info.uid, info.to_document())

    def _records(self, body) -> List[AddOnInfoAndVersions]:
        self._require_ready()
        return [AddOnInfoAndVersions.from_document(hit["_source"]) for hit in self.store.search(self.index_name, body)]

    def search(self, add_on_type: Optional[AddOnType] = None, query: Optional[str] = None) -> List[AddOnInfoSummary]:
        body = build_search_query(add_on_type, query, size=self.search_size)
        return [AddOnInfoSummary.from_info(info) for info in self._records(body)]

    def get_all_by_type(self, add_on_type: AddOnType) -> List[AddOnInfoAndVersions]:
        return self._records(match_query("type", add_on_type.value, size=self.search_size))

    def get_all(self) -> List[AddOnInfoAndVersions]:
        return self._records(match_all_query(size=self.search_size))

    def get_by_uid(self, uid: str) -> Optional[AddOnInfoAndVersions]:
        self._require_ready()
        doc = self.store.get(self.index_name, uid)
        return AddOnInfoAndVersions.from_document(doc) if doc is not None else None

    def get_by_tag(self, tag: str) -> List[AddOnInfoSummary]:
        body = match_query("tags", tag, size=self.search_size)
        return [AddOnInfoSummary.from_info(info) for info in self._records(body)]
