"""Elasticsearch REST store using ``requests``."""
from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

from .store import Hit, IndexUnavailable

logger = logging.getLogger(__name__)


class ElasticsearchStore:
    """``DocumentStore`` backed by an Elasticsearch cluster over HTTP."""

    def __init__(
        self,
        base_url: str = Constants.ES_URL,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = Constants.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._auth: Optional[Tuple[str, str]] = (username, password) if username and password else None

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url] + [urllib.parse.quote(p, safe="_") for p in parts])

    def _call(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        with Timer() as t:
            try:
                res = self._session.request(method, url, timeout=self.timeout, auth=self._auth, **kwargs)
            except requests.RequestException as exc:
                logger.error("Elasticsearch %s %s failed: %s", method, safe_url(url), exc)
                raise IndexUnavailable(f"Elasticsearch unreachable: {exc}") from exc
        if is_debug_enabled(logger):
            logger.debug(
                "Store response",
                extra=extra_context(
                    event="store_response",
                    component="elasticsearch",
                    action=method,
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_url(url),
                ),
            )
        return res

    @staticmethod
    def _check(res: requests.Response, action: str) -> requests.Response:
        if not 200 <= res.status_code < 300:
            raise IndexUnavailable(f"{action} failed: {res.status_code} {res.text}")
        return res

    def count(self, index: str) -> Optional[int]:
        res = self._call("GET", self._url(index, "_count"))
        if res.status_code == 404:
            return None
        return int(self._check(res, "count").json().get("count", 0))

    def create_index(self, index: str) -> None:
        self._check(self._call("PUT", self._url(index)), f"create index {index}")

    def put_mapping(self, index: str, mapping: Dict[str, Any]) -> None:
        self._check(self._call("PUT", self._url(index, "_mapping"), json=mapping), f"put mapping on {index}")

    def put(self, index: str, doc_id: str, document: Dict[str, Any]) -> None:
        self._check(self._call("PUT", self._url(index, "_doc", doc_id), json=document), f"index {doc_id}")

    def get(self, index: str, doc_id: str) -> Optional[Dict[str, Any]]:
        res = self._call("GET", self._url(index, "_doc", doc_id))
        if res.status_code == 404:
            return None
        body = self._check(res, f"get {doc_id}").json()
        if not body.get("found", True):
            return None
        return body.get("_source")

    def search(self, index: str, body: Dict[str, Any]) -> List[Hit]:
        res = self._check(self._call("POST", self._url(index, "_search"), json=body), f"search {index}")
        return list(res.json().get("hits", {}).get("hits", []))
