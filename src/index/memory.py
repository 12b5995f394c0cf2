"""In-process document store evaluating the subset of the query DSL we emit.

Used for single-node deployments without Elasticsearch and in tests.
Scoring is simpler than Lucene's: each matching clause contributes its
boost, scaled by the fraction of query terms matched for ``match``. Ties
keep insertion order.
"""

from __future__ import annotations

import copy
import logging
import re
import threading
from typing import Any, Dict, Iterable, List, Optional

from .store import Hit, IndexUnavailable

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def analyze(text: Any) -> List[str]:
    """Lowercase and split on anything that is not a letter or digit."""
    return _TOKEN_RE.findall(str(text).lower())


def auto_fuzziness(term: str) -> int:
    if len(term) <= 2:
        return 0
    if len(term) <= 5:
        return 1
    return 2


def edit_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + (ca != cb)))
        previous = current
    return previous[-1]


def _phrase_matches(query_tokens: List[str], doc_tokens: List[str], slop: int) -> bool:
    positions = [[i for i, t in enumerate(doc_tokens) if t == q] for q in query_tokens]
    if any(not p for p in positions):
        return False

    def walk(idx: int, last: int, used: int) -> bool:
        if idx == len(positions):
            return True
        for pos in positions[idx]:
            if pos <= last:
                continue
            gap = pos - last - 1 if idx else 0
            if used + gap <= slop and walk(idx + 1, pos, used + gap):
                return True
        return False

    return walk(0, -1, 0)


class _MemoryIndex:
    def __init__(self):
        self.mapping: Dict[str, Any] = {}
        self.docs: Dict[str, Dict[str, Any]] = {}

    def field_type(self, field: str) -> str:
        if field == "_id":
            return "keyword"
        base, _, sub = field.partition(".")
        node = self.mapping.get(base) or {}
        if sub:
            node = (node.get("fields") or {}).get(sub) or {}
        return node.get("type", "text")


class MemoryDocumentStore:
    """Thread-safe dict-backed implementation of ``DocumentStore``."""

    def __init__(self):
        self._indices: Dict[str, _MemoryIndex] = {}
        self._lock = threading.RLock()

    def _index(self, index: str) -> _MemoryIndex:
        try:
            return self._indices[index]
        except KeyError:
            raise IndexUnavailable(f"no such index [{index}]") from None

    def count(self, index: str) -> Optional[int]:
        with self._lock:
            idx = self._indices.get(index)
            return None if idx is None else len(idx.docs)

    def create_index(self, index: str) -> None:
        with self._lock:
            if index in self._indices:
                raise IndexUnavailable(f"index [{index}] already exists")
            self._indices[index] = _MemoryIndex()

    def put_mapping(self, index: str, mapping: Dict[str, Any]) -> None:
        with self._lock:
            self._index(index).mapping.update(copy.deepcopy(mapping.get("properties", {})))

    def put(self, index: str, doc_id: str, document: Dict[str, Any]) -> None:
        with self._lock:
            self._index(index).docs[doc_id] = copy.deepcopy(document)

    def get(self, index: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            idx = self._indices.get(index)
            if idx is None or doc_id not in idx.docs:
                return None
            return copy.deepcopy(idx.docs[doc_id])

    def search(self, index: str, body: Dict[str, Any]) -> List[Hit]:
        with self._lock:
            idx = self._index(index)
            docs = list(idx.docs.items())
        query = body.get("query") or {"match_all": {}}
        size = int(body.get("size", 10))
        hits = []
        for doc_id, source in docs:
            score = _Evaluator(idx, doc_id, source).evaluate(query)
            if score is not None:
                hits.append({"_id": doc_id, "_score": score, "_source": copy.deepcopy(source)})
        # sorted() is stable, so equal scores keep insertion order
        hits.sort(key=lambda h: -h["_score"])
        return hits[:size]


def _clause(node: Dict[str, Any], value_key: str):
    """Split ``{field: value}`` or ``{field: {value_key: v, ...}}`` into parts."""
    (field, params), = node.items()
    if isinstance(params, dict):
        return field, params.get(value_key), params
    return field, params, {}


class _Evaluator:
    def __init__(self, idx: _MemoryIndex, doc_id: str, source: Dict[str, Any]):
        self.idx = idx
        self.doc_id = doc_id
        self.source = source

    def values(self, field: str) -> List[Any]:
        if field == "_id":
            return [self.doc_id]
        value = self.source.get(field.partition(".")[0])
        if value is None:
            return []
        return list(value) if isinstance(value, (list, tuple)) else [value]

    def tokens(self, field: str) -> List[str]:
        out: List[str] = []
        for v in self.values(field):
            out.extend(analyze(v))
        return out

    def is_text(self, field: str) -> bool:
        return self.idx.field_type(field) == "text"

    def evaluate(self, query: Dict[str, Any]) -> Optional[float]:
        (kind, node), = query.items()
        handler = getattr(self, f"_q_{kind}", None)
        if handler is None:
            raise IndexUnavailable(f"unsupported query [{kind}]")
        return handler(node)

    def _q_match_all(self, node: Dict[str, Any]) -> Optional[float]:
        return float(node.get("boost", 1.0))

    def _q_term(self, node: Dict[str, Any]) -> Optional[float]:
        field, value, params = _clause(node, "value")
        candidates: Iterable[Any] = self.tokens(field) if self.is_text(field) else self.values(field)
        if any(v == value for v in candidates):
            return float(params.get("boost", 1.0))
        return None

    def _q_terms(self, node: Dict[str, Any]) -> Optional[float]:
        params = dict(node)
        boost = float(params.pop("boost", 1.0))
        (field, wanted), = params.items()
        candidates = self.tokens(field) if self.is_text(field) else self.values(field)
        return boost if any(v in wanted for v in candidates) else None

    def _q_prefix(self, node: Dict[str, Any]) -> Optional[float]:
        field, value, params = _clause(node, "value")
        candidates = self.tokens(field) if self.is_text(field) else [str(v) for v in self.values(field)]
        if any(c.startswith(str(value)) for c in candidates):
            return float(params.get("boost", 1.0))
        return None

    def _q_match(self, node: Dict[str, Any]) -> Optional[float]:
        field, text, params = _clause(node, "query")
        boost = float(params.get("boost", 1.0))
        if not self.is_text(field):
            return boost if any(str(v) == str(text) for v in self.values(field)) else None
        query_tokens = analyze(text)
        doc_tokens = set(self.tokens(field))
        if not query_tokens or not doc_tokens:
            return None
        fuzzy = params.get("fuzziness") == "AUTO"
        matched = 0
        for q in query_tokens:
            if q in doc_tokens:
                matched += 1
            elif fuzzy and any(edit_distance(q, d) <= auto_fuzziness(q) for d in doc_tokens):
                matched += 1
        if not matched:
            return None
        return boost * matched / len(query_tokens)

    def _q_match_phrase(self, node: Dict[str, Any]) -> Optional[float]:
        field, text, params = _clause(node, "query")
        query_tokens = analyze(text)
        if not query_tokens:
            return None
        if _phrase_matches(query_tokens, self.tokens(field), int(params.get("slop", 0))):
            return float(params.get("boost", 1.0))
        return None

    def _q_bool(self, node: Dict[str, Any]) -> Optional[float]:
        for clause in node.get("filter", []):
            if self.evaluate(clause) is None:
                return None
        for clause in node.get("must_not", []):
            if self.evaluate(clause) is not None:
                return None
        score = 0.0
        for clause in node.get("must", []):
            result = self.evaluate(clause)
            if result is None:
                return None
            score += result
        should = node.get("should", [])
        default_msm = 1 if should and not node.get("must") and not node.get("filter") else 0
        minimum = int(node.get("minimum_should_match", default_msm))
        matched = 0
        for clause in should:
            result = self.evaluate(clause)
            if result is not None:
                matched += 1
                score += result
        if matched < minimum:
            return None
        if not should and not node.get("must"):
            # Empty bool behaves as match_all; filter-only bools do not score.
            return 0.0 if node.get("filter") else 1.0
        return score

    def _q_boosting(self, node: Dict[str, Any]) -> Optional[float]:
        score = self.evaluate(node["positive"])
        if score is None:
            return None
        if self.evaluate(node["negative"]) is not None:
            score *= float(node.get("negative_boost", 1.0))
        return score
