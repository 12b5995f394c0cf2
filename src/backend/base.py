"""Capability protocols implemented by hosting backends.

A backend implements ``BackendHandler`` and, if the host publishes download
statistics, ``SupportsDownloadCounts``. Backends share no base
class: each backend owns its URL layout and its ``HttpClient``.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from domain import AddOnInfoAndVersions, AddOnToIndex


@runtime_checkable
class BackendHandler(Protocol):
    """Fetches metadata and versions for one add-on."""

    name: str

    def get_info_and_versions_for(self, to_index: AddOnToIndex) -> Optional[AddOnInfoAndVersions]:
        """Return the merged record, or None if the backend could not serve it this cycle."""


@runtime_checkable
class SupportsDownloadCounts(Protocol):
    """Backends that can report recent download counts."""

    def fetch_download_counts(self, to_index: AddOnToIndex, info: AddOnInfoAndVersions) -> None:
        """Set ``info.download_count_in_last_30_days``; never raises."""
