"""Builds the ranked search request for add-on documents.

Clause weights, highest first: exact uid, exact tag, name prefix, name
match, description match, then a slop-tolerant phrase and a fuzzy match on
the name. The whole positive query is wrapped in a ``boosting`` query that
multiplies the score of DEPRECATED and INACTIVE add-ons by 0.01, demoting
them without excluding them.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from constants import Constants
from domain import AddOnType


def _type_value(add_on_type) -> str:
    return add_on_type.value if isinstance(add_on_type, AddOnType) else str(add_on_type)


def build_bool_query(add_on_type: Optional[AddOnType] = None, query: Optional[str] = None) -> Dict[str, Any]:
    bool_query: Dict[str, Any] = {}
    if add_on_type is not None:
        bool_query["filter"] = [{"term": {"type": _type_value(add_on_type)}}]
    if query is not None:
        bool_query["should"] = [
            {"term": {"_id": {"value": query, "boost": Constants.BOOST_UID}}},
            {"term": {"tags": {"value": query, "boost": Constants.BOOST_TAG}}},
            {"prefix": {"name": {"value": query, "boost": Constants.BOOST_NAME_PREFIX}}},
            {"match": {"name": {"query": query, "boost": Constants.BOOST_NAME}}},
            {"match": {"description": {"query": query, "boost": Constants.BOOST_DESCRIPTION}}},
            # Elasticsearch rejects fuzziness on match_phrase, so spelling
            # tolerance is a separate clause.
            {"match_phrase": {"name": {"query": query, "slop": Constants.PHRASE_SLOP}}},
            {"match": {"name": {"query": query, "fuzziness": "AUTO"}}},
        ]
        bool_query["minimum_should_match"] = 1
    return {"bool": bool_query}


def build_search_query(
    add_on_type: Optional[AddOnType] = None,
    query: Optional[str] = None,
    size: int = Constants.SEARCH_SIZE,
) -> Dict[str, Any]:
    """Return the search request body for ``DocumentStore.search``."""
    return {
        "size": size,
        "query": {
            "boosting": {
                "positive": build_bool_query(add_on_type, query),
                "negative": {"terms": {"status": list(Constants.DEMOTED_STATUSES)}},
                "negative_boost": Constants.NEGATIVE_BOOST,
            }
        },
    }


def match_query(field: str, value: str, size: int = Constants.SEARCH_SIZE) -> Dict[str, Any]:
    """Plain single-field match, used for lookups by tag and by type."""
    return {"size": size, "query": {"match": {field: value}}}


def match_all_query(size: int = Constants.SEARCH_SIZE) -> Dict[str, Any]:
    return {"size": size, "query": {"match_all": {}}}
