"""Fetches the list of add-ons to index and publishes it as a snapshot."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

from constants import Constants, FetchStrategy
from common.http_client import HttpClient
from common.logging_utils import safe_url
from domain import AddOnToIndex, AllAddOnsToIndex

logger = logging.getLogger(__name__)

MANIFEST_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["toIndex"],
    "properties": {
        "toIndex": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["uid", "type"],
                "properties": {
                    "uid": {"type": "string", "minLength": 1},
                    "type": {"type": "string", "enum": ["OMOD", "OWA", "omod", "owa"]},
                    "backend": {"type": "string", "enum": Constants.SUPPORTED_BACKENDS},
                    "name": {"type": ["string", "null"]},
                    "description": {"type": ["string", "null"]},
                    "status": {"type": "string", "enum": ["ACTIVE", "DEPRECATED", "INACTIVE"]},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "hostedUrl": {"type": ["string", "null"]},
                    "maintainers": {"type": "array", "items": {"type": "object"}},
                    "bintrayPackageDetails": {
                        "type": "object",
                        "required": ["owner", "repo", "package"],
                    },
                    "mavenRepoDetails": {
                        "type": "object",
                        "required": ["groupId", "artifactId"],
                    },
                },
            },
        }
    },
}


class ManifestError(ValueError):
    """The manifest could not be read or does not match the schema."""


def parse_manifest(text: str, version: int = 0) -> AllAddOnsToIndex:
    """Validate and parse manifest JSON into a snapshot.

    Raises:
        ManifestError: on invalid JSON or the first schema violation.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Manifest is not valid JSON: {exc}") from exc
    errors = sorted(Draft7Validator(MANIFEST_SCHEMA).iter_errors(data), key=lambda e: list(e.path))
    if errors:
        first = errors[0]
        path = "/".join(str(p) for p in first.path)
        raise ManifestError(f"Invalid manifest at '{path}': {first.message}")
    return AllAddOnsToIndex(
        to_index=tuple(AddOnToIndex.from_json(item) for item in data["toIndex"]),
        version=version,
    )


class ManifestHolder:
    """Holds the current snapshot; replacement is an atomic reference swap."""

    def __init__(self, initial: Optional[AllAddOnsToIndex] = None):
        self._lock = threading.Lock()
        self._current = initial or AllAddOnsToIndex()

    @property
    def current(self) -> AllAddOnsToIndex:
        return self._current

    def replace(self, snapshot: AllAddOnsToIndex) -> AllAddOnsToIndex:
        """Swap in ``snapshot`` re-stamped with the next version number."""
        with self._lock:
            stamped = AllAddOnsToIndex(to_index=snapshot.to_index, version=self._current.version + 1)
            self._current = stamped
            return stamped


class FetchAddOnList:
    """Reads the manifest (remote URL or local file) into a ``ManifestHolder``."""

    def __init__(
        self,
        holder: ManifestHolder,
        http: HttpClient,
        url: str = Constants.ADD_ON_LIST_URL,
        strategy: FetchStrategy = FetchStrategy.FETCH,
        local_path: Optional[str] = None,
    ):
        self.holder = holder
        self.http = http
        self.url = url
        self.strategy = strategy
        self.local_path = local_path

    @property
    def source(self) -> str:
        if self.strategy is FetchStrategy.LOCAL:
            return str(self.local_path)
        return safe_url(self.url)

    def _read(self) -> str:
        if self.strategy is FetchStrategy.LOCAL:
            logger.debug("LOCAL strategy: %s", self.local_path)
            if not self.local_path:
                raise ManifestError("LOCAL strategy requires add_on_list.local_path")
            return Path(self.local_path).read_text(encoding="utf-8")
        logger.debug("FETCH strategy: %s", safe_url(self.url))
        res = self.http.get(self.url, context="add_on_list")
        if not 200 <= res.status_code < 300:
            raise ManifestError(f"HTTP {res.status_code} fetching manifest")
        return res.text

    def fetch_add_on_list(self) -> bool:
        """Fetch, parse and publish the manifest.

        Returns:
            True if a new snapshot was published. On any failure, or when the
            manifest lists no add-ons, the previous snapshot is kept.
        """
        logger.info("Fetching list of add-ons to index")
        try:
            snapshot = parse_manifest(self._read())
        except Exception:  # pylint: disable=broad-exception-caught
            logger.warning(
                "Manifest from %s could not be fetched or parsed. Keeping our current list",
                self.source,
                exc_info=True,
            )
            return False

        logger.info("We have %s add-ons to index", len(snapshot))
        if not len(snapshot):
            logger.warning("Manifest from %s does not list any add-ons to index. Keeping our current list", self.source)
            return False
        published = self.holder.replace(snapshot)
        logger.info("Published add-on list version %s", published.version)
        return True
