"""Maven repository backend: versions from maven-metadata.xml, artifacts by HEAD probe."""
from __future__ import annotations

import email.utils
import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import List, Optional

from constants import Backends, Constants
from common.http_client import HttpClient
from common.logging_utils import extra_context, safe_url
from domain import AddOnInfoAndVersions, AddOnToIndex, AddOnVersion, MavenRepoDetails
from versioning import Version, VersionList

logger = logging.getLogger(__name__)

CONTEXT = Backends.MAVEN.value


def parse_metadata_versions(text: str) -> List[str]:
    """Return the ``versioning/versions/version`` entries of maven-metadata.xml."""
    root = ET.fromstring(text)
    versions = []
    versioning = root.find("versioning")
    if versioning is not None:
        versions_elem = versioning.find("versions")
        if versions_elem is not None:
            for version_elem in versions_elem.findall("version"):
                if version_elem.text and version_elem.text.strip():
                    versions.append(version_elem.text.strip())
    return versions


def _parse_http_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


class MavenRepository:
    """Backend reading a Maven repository layout.

    Implements ``BackendHandler`` only; Maven repositories publish no
    download statistics.
    """

    name = CONTEXT

    def __init__(self, http: HttpClient, default_repo_url: str = Constants.MAVEN_REPO_URL):
        self.http = http
        self.default_repo_url = default_repo_url.rstrip("/")

    def _details(self, to_index: AddOnToIndex) -> MavenRepoDetails:
        details = to_index.maven_repo_details
        if details is None:
            raise ValueError(f"{to_index.uid} has no mavenRepoDetails")
        return details

    def artifact_base_url(self, to_index: AddOnToIndex) -> str:
        d = self._details(to_index)
        repo = (d.repo_url or self.default_repo_url).rstrip("/")
        return f"{repo}/{d.group_id.replace('.', '/')}/{d.artifact_id}"

    def artifact_url(self, to_index: AddOnToIndex, version: str) -> str:
        d = self._details(to_index)
        ext = to_index.type.file_extension
        return f"{self.artifact_base_url(to_index)}/{version}/{d.artifact_id}-{version}.{ext}"

    def get_info_and_versions_for(self, to_index: AddOnToIndex) -> Optional[AddOnInfoAndVersions]:
        url = f"{self.artifact_base_url(to_index)}/maven-metadata.xml"
        try:
            res = self.http.get(url, context=CONTEXT)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.warning("Problem fetching %s", safe_url(url), exc_info=True)
            return None
        if not 200 <= res.status_code < 300:
            logger.warning(
                "Problem fetching %s -> %s",
                safe_url(url),
                res.status_code,
                extra=extra_context(
                    event="http_response",
                    outcome="handled_non_2xx",
                    status_code=res.status_code,
                    target=safe_url(url),
                    uid=to_index.uid,
                ),
            )
            return None
        try:
            versions = VersionList(parse_metadata_versions(res.text))
        except ET.ParseError:
            logger.warning("Malformed maven-metadata.xml for %s", to_index.uid)
            return None

        info = AddOnInfoAndVersions.from_descriptor(to_index)
        if not info.hosted_url:
            info.hosted_url = self.artifact_base_url(to_index)
        if not info.name:
            info.name = self._details(to_index).artifact_id
        for version in versions:
            resolved = self._resolve_version(to_index, version)
            if resolved is not None:
                info.add_version(resolved)
        return info

    def _resolve_version(self, to_index: AddOnToIndex, version: Version) -> Optional[AddOnVersion]:
        url = self.artifact_url(to_index, str(version))
        try:
            res = self.http.head(url, context=CONTEXT)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.warning("Problem probing %s", safe_url(url), exc_info=True)
            return None
        if not 200 <= res.status_code < 300:
            logger.debug("No %s artifact for %s %s", to_index.type.file_extension, to_index.uid, version)
            return None
        return AddOnVersion(
            version=version,
            release_datetime=_parse_http_date(res.headers.get("Last-Modified")),
            download_uri=url,
        )
