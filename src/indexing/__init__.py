"""Periodic manifest fetch and the fetch -> reconcile -> index pipeline."""

from .config_xml import ConfigXmlError, handle_config_xml
from .details import FetchDetailsToIndex
from .manifest import FetchAddOnList, ManifestError, ManifestHolder, parse_manifest
from .scheduler import PeriodicTask
from .status import IndexingStatus

__all__ = [
    "ConfigXmlError",
    "FetchAddOnList",
    "FetchDetailsToIndex",
    "IndexingStatus",
    "ManifestError",
    "ManifestHolder",
    "PeriodicTask",
    "handle_config_xml",
    "parse_manifest",
]
