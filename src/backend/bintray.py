"""Bintray-style package API backend: package info, per-version files and geo stats."""
from __future__ import annotations

import logging
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from constants import Backends, Constants
from common.http_client import HttpClient
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from domain import (
    AddOnInfoAndVersions,
    AddOnToIndex,
    AddOnVersion,
    BintrayPackageDetails,
    parse_datetime,
)
from versioning import Version

logger = logging.getLogger(__name__)

CONTEXT = Backends.BINTRAY.value


@dataclass
class BintrayUrls:
    """URL roots for the package API; overridable for mirrors and tests."""

    api: str = Constants.BINTRAY_API_URL
    download: str = Constants.BINTRAY_DOWNLOAD_URL
    hosted: str = Constants.BINTRAY_HOSTED_URL
    stats: str = Constants.BINTRAY_STATS_URL


def _details(to_index: AddOnToIndex) -> BintrayPackageDetails:
    details = to_index.bintray_package_details
    if details is None:
        raise ValueError(f"{to_index.uid} has no bintrayPackageDetails")
    return details


def _quote(part: str) -> str:
    return urllib.parse.quote(part, safe="")


class Bintray:
    """Backend for a Bintray-style package API.

    Implements both ``BackendHandler`` and ``SupportsDownloadCounts``.
    """

    name = CONTEXT

    def __init__(self, http: HttpClient, urls: Optional[BintrayUrls] = None):
        self.http = http
        self.urls = urls or BintrayUrls()

    # URL templates

    def package_url_for(self, to_index: AddOnToIndex) -> str:
        d = _details(to_index)
        return f"{self.urls.api}/packages/{_quote(d.owner)}/{_quote(d.repo)}/{_quote(d.package)}"

    def version_files_url_for(self, to_index: AddOnToIndex, version: str) -> str:
        return f"{self.package_url_for(to_index)}/versions/{_quote(version)}/files?include_unpublished=0"

    def hosted_url_for(self, to_index: AddOnToIndex) -> str:
        d = _details(to_index)
        return f"{self.urls.hosted}/{d.owner}/{d.repo}/{d.package}"

    def download_uri_for(self, to_index: AddOnToIndex, file_path: str) -> str:
        d = _details(to_index)
        return f"{self.urls.download}/{d.owner}/{d.repo}/{file_path.lstrip('/')}"

    def download_count_url_for(self, to_index: AddOnToIndex) -> str:
        d = _details(to_index)
        return f"{self.urls.stats}?pkgPath=/{d.owner}/{d.repo}/{d.package}"

    # BackendHandler

    def get_info_and_versions_for(self, to_index: AddOnToIndex) -> Optional[AddOnInfoAndVersions]:
        """Fetch package metadata and resolve one release artifact per version.

        Returns None (and logs) on any non-2xx response or transport failure
        so the add-on is skipped this cycle without failing the batch.
        """
        if not self.http.settings.has_credentials:
            logger.warning("You may need to configure bintray.username and bintray.api_key")

        url = self.package_url_for(to_index)
        with Timer() as timer:
            try:
                res = self.http.get(url, context=CONTEXT, authenticated=True)
            except Exception:  # pylint: disable=broad-exception-caught
                logger.warning(
                    "Problem fetching %s",
                    safe_url(url),
                    exc_info=True,
                    extra=extra_context(event="http_error", outcome="exception", target=safe_url(url), uid=to_index.uid),
                )
                return None

        if not 200 <= res.status_code < 300:
            logger.warning(
                "Problem fetching %s -> %s %s",
                safe_url(url),
                res.status_code,
                res.text,
                extra=extra_context(
                    event="http_response",
                    outcome="handled_non_2xx",
                    status_code=res.status_code,
                    duration_ms=timer.duration_ms(),
                    target=safe_url(url),
                    uid=to_index.uid,
                ),
            )
            return None

        try:
            package_json = res.json()
        except ValueError:
            logger.warning("Couldn't decode package JSON for %s", to_index.uid)
            return None
        if not isinstance(package_json, dict):
            logger.warning("Unexpected package JSON for %s: %s", to_index.uid, type(package_json).__name__)
            return None
        return self.handle_package_json(to_index, package_json)

    def handle_package_json(self, to_index: AddOnToIndex, package_json: Dict[str, Any]) -> AddOnInfoAndVersions:
        info = AddOnInfoAndVersions.from_descriptor(to_index)
        info.hosted_url = self.hosted_url_for(to_index)

        if not info.name:
            info.name = package_json.get("name") or ""
        if not info.description:
            info.description = package_json.get("desc") or ""

        expected_extension = "." + info.type.file_extension
        versions = package_json.get("versions")
        if not isinstance(versions, list):
            versions = []
        for version_string in versions:
            if not isinstance(version_string, str) or not version_string.strip():
                logger.warning("Skipping invalid version %r for %s", version_string, to_index.uid)
                continue
            files = self._fetch_version_files(to_index, version_string)
            version = self._resolve_version(to_index, version_string, files, expected_extension)
            if version is not None:
                info.add_version(version)
        return info

    def _fetch_version_files(self, to_index: AddOnToIndex, version_string: str) -> List[Dict[str, Any]]:
        url = self.version_files_url_for(to_index, version_string)
        try:
            status, files = self.http.get_json(url, context=CONTEXT, authenticated=True)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.warning("Problem fetching files for %s %s", to_index.uid, version_string, exc_info=True)
            return []
        if status != 200 or not isinstance(files, list):
            logger.debug("No file listing for %s %s (status %s)", to_index.uid, version_string, status)
            return []
        return files

    def _resolve_version(
        self,
        to_index: AddOnToIndex,
        version_string: str,
        files: List[Dict[str, Any]],
        expected_extension: str,
    ) -> Optional[AddOnVersion]:
        for file_node in files:
            if not isinstance(file_node, dict):
                continue
            file_name = file_node.get("name")
            if not isinstance(file_name, str):
                continue
            if file_name.endswith(expected_extension):
                try:
                    released = parse_datetime(file_node.get("created"))
                except (TypeError, ValueError, AttributeError):
                    logger.warning("Unparseable created time %r on %s", file_node.get("created"), file_name)
                    released = None
                path = file_node.get("path")
                return AddOnVersion(
                    version=Version(version_string),
                    release_datetime=released,
                    download_uri=self.download_uri_for(to_index, path if isinstance(path, str) and path else file_name),
                )
            if is_debug_enabled(logger):
                logger.debug("Skipping file: %s", file_name)
        return None

    # SupportsDownloadCounts

    def fetch_download_counts(self, to_index: AddOnToIndex, info: AddOnInfoAndVersions) -> None:
        """Sum the per-region download totals into ``info``.

        Counts are re-fetched every cycle. Failures are logged and leave the
        existing count untouched.
        """
        logger.info("Fetching download counts for %s", to_index.uid)
        url = self.download_count_url_for(to_index)
        try:
            status, stats = self.http.get_json(url, context=CONTEXT)
            if status != 200 or not isinstance(stats, dict):
                raise ValueError(f"unexpected stats response (status {status})")
            info.download_count_in_last_30_days = total_downloads(stats)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.error("Error fetching download counts for %s", to_index.uid, exc_info=True)


def total_downloads(geo_stats: Dict[str, Any]) -> int:
    """Sum ``totalDownloads`` across all regions."""
    per_region = geo_stats.get("totalDownloads") or {}
    return sum(int(count) for count in per_region.values())
