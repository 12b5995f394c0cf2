"""Fetch -> reconcile -> index cycle over the current add-on list."""

from __future__ import annotations

import io
import logging
import zipfile
from typing import Optional

from backend import BackendRegistry, SupportsDownloadCounts
from common.http_client import HttpClient
from common.logging_utils import extra_context, safe_url, Timer
from constants import Constants
from domain import AddOnInfoAndVersions, AddOnToIndex, AddOnType, AddOnVersion
from index import AddOnIndex, IndexUnavailable

from .config_xml import handle_config_xml
from .manifest import ManifestHolder
from .status import IndexingStatus

logger = logging.getLogger(__name__)


class FetchDetailsToIndex:
    """Runs one sequential pass over every add-on in the manifest.

    Failures fetching or parsing one add-on are logged and recorded in
    ``IndexingStatus``; the pass continues with the next add-on. A store
    outage (``IndexUnavailable``) ends the pass.
    """

    def __init__(
        self,
        holder: ManifestHolder,
        backends: BackendRegistry,
        index: AddOnIndex,
        http: HttpClient,
        status: Optional[IndexingStatus] = None,
    ):
        self.holder = holder
        self.backends = backends
        self.index = index
        self.http = http
        self.status = status or IndexingStatus()

    def run_cycle(self) -> int:
        """Index every add-on in the current snapshot; return how many succeeded."""
        snapshot = self.holder.current
        logger.info("Fetching details for %s add-ons (list version %s)", len(snapshot), snapshot.version)
        indexed = 0
        for to_index in snapshot:
            try:
                if self.fetch_one(to_index):
                    indexed += 1
            except IndexUnavailable:
                self.status.error(to_index.uid, "index unavailable")
                raise
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.error(
                    "Error fetching details for %s",
                    to_index.uid,
                    exc_info=True,
                    extra=extra_context(event="fetch_details", outcome="error", uid=to_index.uid),
                )
                self.status.error(to_index.uid, str(exc) or exc.__class__.__name__)
        logger.info("Indexed %s of %s add-ons", indexed, len(snapshot))
        return indexed

    def fetch_one(self, to_index: AddOnToIndex) -> bool:
        """Fetch, reconcile and index a single add-on.

        Returns:
            False when the backend had nothing for it this cycle.
        """
        handler = self.backends.handler_for(to_index)
        with Timer() as timer:
            info = handler.get_info_and_versions_for(to_index)
        if info is None:
            self.status.error(to_index.uid, f"{handler.name} returned no data")
            return False

        existing = self.index.get_by_uid(to_index.uid)
        if to_index.type is AddOnType.OMOD:
            self.fill_module_details(info, existing)

        if isinstance(handler, SupportsDownloadCounts):
            if existing is not None:
                info.download_count_in_last_30_days = existing.download_count_in_last_30_days
            handler.fetch_download_counts(to_index, info)

        self.index.index(info)
        self.status.success(to_index.uid)
        logger.info(
            "Indexed %s with %s versions",
            to_index.uid,
            len(info.versions),
            extra=extra_context(event="indexed", uid=to_index.uid, duration_ms=timer.duration_ms()),
        )
        return True

    def fill_module_details(self, info: AddOnInfoAndVersions, existing: Optional[AddOnInfoAndVersions]) -> None:
        """Populate config.xml details, reusing what the index already knows."""
        for version in info.versions:
            known = existing.get_version(version.version) if existing is not None else None
            if known is not None and known.has_module_details:
                version.copy_module_details_from(known)
                continue
            try:
                self.fetch_module_details(version)
            except Exception:  # pylint: disable=broad-exception-caught
                logger.warning(
                    "Could not read %s from %s %s",
                    Constants.MODULE_CONFIG_FILE,
                    info.uid,
                    version.version,
                    exc_info=True,
                )
        info.refresh()

    def fetch_module_details(self, version: AddOnVersion) -> None:
        """Download the .omod and parse its embedded config.xml into ``version``."""
        if not version.download_uri:
            return
        res = self.http.get(version.download_uri, context="omod")
        if not 200 <= res.status_code < 300:
            raise IOError(f"HTTP {res.status_code} downloading {safe_url(version.download_uri)}")
        with zipfile.ZipFile(io.BytesIO(res.content)) as archive:
            config_xml = archive.read(Constants.MODULE_CONFIG_FILE)
        handle_config_xml(config_xml, version)
